"""SQLite-based conversation log, scoped by company."""

import sqlite3
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional, List

from .models import Conversation, ConversationTurn

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.now()


class SQLiteMemoryStore:
    """SQLite-based persistent conversation log."""

    def __init__(self, db_path: str = "data/conversations.db"):
        """
        Initialize SQLite memory store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                conversation_id TEXT PRIMARY KEY,
                company_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS turns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                turn_id INTEGER NOT NULL,
                role TEXT NOT NULL CHECK(role IN ('user', 'assistant')),
                content TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                metadata TEXT,
                FOREIGN KEY (conversation_id) REFERENCES conversations(conversation_id)
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_turns_conversation ON turns(conversation_id)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_conversations_company ON conversations(company_id)"
        )

        conn.commit()
        conn.close()
        logger.info(f"Database initialized at {self.db_path}")

    def create_conversation(self, conversation_id: str, company_id: str, user_id: str) -> Conversation:
        """
        Create a new conversation, or return the existing one unchanged.

        An id that is already logged keeps its original owner, so callers
        compare the returned company and user with their own before
        appending turns.

        Args:
            conversation_id: Unique conversation (session) ID
            company_id: Owning company
            user_id: User who started the session

        Returns:
            The stored Conversation (without turns)
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        now = datetime.now()
        cursor.execute(
            """
            INSERT OR IGNORE INTO conversations (conversation_id, company_id, user_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (conversation_id, company_id, user_id, now.isoformat(), now.isoformat())
        )
        cursor.execute(
            "SELECT * FROM conversations WHERE conversation_id = ?",
            (conversation_id,)
        )
        row = cursor.fetchone()

        conn.commit()
        conn.close()

        return Conversation(
            conversation_id=row["conversation_id"],
            company_id=row["company_id"],
            user_id=row["user_id"],
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
            turns=[]
        )

    def add_turn(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: Optional[dict] = None
    ) -> ConversationTurn:
        """
        Add a turn to a conversation.

        Args:
            conversation_id: Conversation ID
            role: Role (user or assistant)
            content: Message content
            metadata: Optional metadata (response type, tool name)

        Returns:
            Created ConversationTurn object
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            "SELECT MAX(turn_id) FROM turns WHERE conversation_id = ?",
            (conversation_id,)
        )
        result = cursor.fetchone()
        turn_id = (result[0] or 0) + 1

        now = datetime.now()
        metadata_json = json.dumps(metadata) if metadata else None

        cursor.execute(
            """
            INSERT INTO turns (conversation_id, turn_id, role, content, timestamp, metadata)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (conversation_id, turn_id, role, content, now.isoformat(), metadata_json)
        )

        cursor.execute(
            "UPDATE conversations SET updated_at = ? WHERE conversation_id = ?",
            (now.isoformat(), conversation_id)
        )

        conn.commit()
        conn.close()

        return ConversationTurn(
            turn_id=turn_id,
            role=role,
            content=content,
            timestamp=now,
            metadata=metadata
        )

    def _row_to_turn(self, row: sqlite3.Row) -> ConversationTurn:
        return ConversationTurn(
            turn_id=row["turn_id"],
            role=row["role"],
            content=row["content"],
            timestamp=_parse_timestamp(row["timestamp"]),
            metadata=json.loads(row["metadata"]) if row["metadata"] else None
        )

    def get_conversation(self, conversation_id: str, company_id: str) -> Optional[Conversation]:
        """
        Get a conversation with all turns.

        Args:
            conversation_id: Conversation ID
            company_id: Caller's company; other companies' logs are invisible

        Returns:
            Conversation object or None if not found
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            "SELECT * FROM conversations WHERE conversation_id = ? AND company_id = ?",
            (conversation_id, company_id)
        )
        conv_row = cursor.fetchone()

        if not conv_row:
            conn.close()
            return None

        cursor.execute(
            """
            SELECT turn_id, role, content, timestamp, metadata
            FROM turns
            WHERE conversation_id = ?
            ORDER BY turn_id
            """,
            (conversation_id,)
        )
        turn_rows = cursor.fetchall()
        conn.close()

        return Conversation(
            conversation_id=conv_row["conversation_id"],
            company_id=conv_row["company_id"],
            user_id=conv_row["user_id"],
            created_at=_parse_timestamp(conv_row["created_at"]),
            updated_at=_parse_timestamp(conv_row["updated_at"]),
            turns=[self._row_to_turn(row) for row in turn_rows]
        )

    def get_recent_turns(self, conversation_id: str, limit: int = 10) -> List[ConversationTurn]:
        """
        Get most recent turns from a conversation, oldest first.

        Args:
            conversation_id: Conversation ID
            limit: Maximum number of turns to return
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            """
            SELECT turn_id, role, content, timestamp, metadata
            FROM turns
            WHERE conversation_id = ?
            ORDER BY turn_id DESC
            LIMIT ?
            """,
            (conversation_id, limit)
        )
        rows = cursor.fetchall()
        conn.close()

        return [self._row_to_turn(row) for row in reversed(rows)]

    def get_turn_count(self, conversation_id: str) -> int:
        """Get the number of logged turns in a conversation."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            "SELECT COUNT(*) FROM turns WHERE conversation_id = ?",
            (conversation_id,)
        )
        result = cursor.fetchone()
        conn.close()

        return result[0] if result else 0

    def list_conversations(self, company_id: str, limit: int = 50) -> List[Conversation]:
        """
        List a company's conversations, most recently updated first.

        Args:
            company_id: Company whose conversations to list
            limit: Maximum number of conversations

        Returns:
            List of Conversation objects (without turns)
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            """
            SELECT * FROM conversations
            WHERE company_id = ?
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (company_id, limit)
        )
        rows = cursor.fetchall()
        conn.close()

        return [
            Conversation(
                conversation_id=row["conversation_id"],
                company_id=row["company_id"],
                user_id=row["user_id"],
                created_at=_parse_timestamp(row["created_at"]),
                updated_at=_parse_timestamp(row["updated_at"]),
                turns=[]  # Don't load turns for listing
            )
            for row in rows
        ]
