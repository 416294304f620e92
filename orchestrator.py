"""Dialogue controller for the WeddingFlow planning assistant."""

import json
import uuid
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from config.settings import Settings
from schemas.actions import ActionState, ExecutionResult, PendingAction
from schemas.context import Identity, Language
from schemas.entities import EntityType, ResolvedEntity, ResolvedMatch, AmbiguousMatch, Scope
from schemas.responses import AssistantResponse, ResponseType
from schemas.tools import ToolDefinition, ToolKind
from utils.errors import (
    AmbiguousEntityError, NoMatchError, DateParseError, UnknownToolError,
    SchemaValidationError, ExecutionError, ExpiredActionError,
    SessionNotFoundError, EntityNotFoundError,
)
from utils.formatting import humanize_field

# LLM components
from llm.factory import create_llm_client, LLMProvider
from llm.base_client import BaseLLMClient, Message, ToolCall, MalformedResponseError
from llm.offline_client import RuleBasedLLMClient

# Store, resolution and tools
from store.entity_store import EntityStore, InMemoryEntityStore
from store.records import display_name
from store.seed import load_seed
from resolver.entity_resolver import EntityResolver
from resolver.dates import parse_natural_date, parse_time
from tools.catalog import ToolCatalog
from tools.definitions import build_default_catalog
from tools.executor import ToolExecutor
from tools.previews import PreviewBuilder

# Memory components
from memory.entity_memory import pronoun_number
from memory.models import Conversation, ConversationSession
from memory.context_manager import ContextBuilder
from memory.sqlite_store import SQLiteMemoryStore

# Conversation agents
from agents.language import detect_language
from agents.confirmation import ReplyClassifier, ReplyIntent
from agents.composer import ResponseComposer
from agents.localization import translate, entity_label

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent


class DialogueController:
    """
    Routes each utterance through the model and the confirmation state machine.

    Queries run in the same turn. Mutations are resolved, validated and
    previewed, then wait as the session's single PendingAction until the
    next utterance confirms, rejects or outlives them.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        store: Optional[EntityStore] = None,
        catalog: Optional[ToolCatalog] = None,
        clock: Optional[Callable[[], datetime]] = None,
        conversation_store: Optional[SQLiteMemoryStore] = None
    ):
        """
        Initialize the controller.

        Args:
            settings: Application settings
            llm_client: Language model client (built from settings if omitted)
            store: Entity store (YAML-seeded in-memory store if omitted)
            catalog: Tool registry (the default catalog if omitted)
            clock: Source of "now" for expiry and date parsing
            conversation_store: Optional conversation log
        """
        self.settings = settings or Settings()
        self.clock = clock or datetime.now
        self.sessions: Dict[str, ConversationSession] = {}

        self.llm_client = llm_client or self._init_llm_client()
        self.store = store if store is not None else self._init_store()
        self.catalog = catalog or build_default_catalog()

        self.resolver = EntityResolver(
            self.store,
            threshold=self.settings.match_threshold,
            ambiguity_margin=self.settings.ambiguity_margin,
        )
        self.executor = ToolExecutor(self.store, clock=self.clock)
        self.context_builder = ContextBuilder(self.store, max_turns=self.settings.max_recent_turns)
        self.preview_builder = PreviewBuilder(self.store)
        self.composer = ResponseComposer()
        self.classifier = ReplyClassifier()

        self.conversation_store = conversation_store
        if self.conversation_store is None and self.settings.memory_enabled:
            self._init_memory()

        logger.info(
            f"Dialogue controller ready: {len(self.catalog)} tools, "
            f"model {self.llm_client.get_provider_name()}/{self.llm_client.get_model_name()}"
        )

    def _init_llm_client(self) -> BaseLLMClient:
        """Initialize LLM client based on settings, falling back to the offline router."""
        provider = self.settings.llm_provider
        if provider == LLMProvider.OFFLINE.value:
            return RuleBasedLLMClient()

        api_key = self.settings.get_llm_api_key()
        if not api_key:
            logger.warning(f"No API key for {provider}. Using the offline rule-based router.")
            return RuleBasedLLMClient()

        try:
            client = create_llm_client(
                provider=LLMProvider(provider),
                api_key=api_key,
                model=self.settings.llm_model
            )
            logger.info(f"LLM client initialized: {provider} ({client.get_model_name()})")
            return client
        except ValueError as e:
            logger.error(f"Failed to initialize LLM client: {e}")
            return RuleBasedLLMClient()

    def _init_store(self) -> EntityStore:
        seed_path = Path(self.settings.seed_path)
        if not seed_path.is_absolute() and not seed_path.exists():
            seed_path = PROJECT_ROOT / seed_path
        logger.info(f"Loading demo data from {seed_path}")
        return load_seed(str(seed_path), store=InMemoryEntityStore(clock=self.clock))

    def _init_memory(self):
        """Initialize the conversation log."""
        try:
            self.conversation_store = SQLiteMemoryStore(db_path=self.settings.db_path)
            logger.info(f"Conversation log initialized: {self.settings.db_path}")
        except OSError as e:
            logger.error(f"Failed to initialize conversation log: {e}")
            self.conversation_store = None

    # ---- Sessions ----

    def open_session(
        self,
        identity: Identity,
        client_id: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> ConversationSession:
        """
        Start a conversation for an authenticated caller.

        A session id already in the conversation log resumes that
        conversation's recent turns, provided it belongs to the same caller.

        Args:
            identity: Caller's user and company, from the auth layer
            client_id: Optional client to put in focus
            session_id: Optional id (generated otherwise)

        Raises:
            SessionNotFoundError: The logged conversation belongs to someone else
        """
        session = ConversationSession(
            session_id=session_id or str(uuid.uuid4()),
            identity=identity,
            active_client_id=client_id,
            max_recent_turns=self.settings.max_recent_turns,
        )
        if self.conversation_store:
            conversation = self.conversation_store.create_conversation(
                session.session_id, identity.company_id, identity.user_id
            )
            if (conversation.company_id, conversation.user_id) != (identity.company_id, identity.user_id):
                logger.warning(f"Logged conversation {session.session_id} belongs to another caller")
                raise SessionNotFoundError(session.session_id)
            self._restore_turns(session)
        self.sessions[session.session_id] = session
        logger.info(f"Opened session {session.session_id} for company {identity.company_id}")
        return session

    def _restore_turns(self, session: ConversationSession):
        """Refill the recent-turn window from the conversation log."""
        logged = self.conversation_store.get_turn_count(session.session_id)
        if not logged:
            return
        turns = self.conversation_store.get_recent_turns(session.session_id, limit=2 * session.max_recent_turns)
        user_text = None
        for turn in turns:
            if turn.role == "user":
                user_text = turn.content
            elif user_text is not None:
                session.add_turn(user_text, turn.content)
                user_text = None
        session.turn_count = logged // 2
        logger.info(f"Resumed session {session.session_id} with {len(session.recent_turns)} logged turns")

    def close_session(self, session_id: str):
        self.sessions.pop(session_id, None)

    def list_sessions(self, identity: Identity, limit: int = 20) -> List[Conversation]:
        """Logged conversations of the caller's company, most recent first."""
        if not self.conversation_store:
            return []
        return self.conversation_store.list_conversations(identity.company_id, limit=limit)

    def _get_session(self, session_id: str, identity: Optional[Identity]) -> ConversationSession:
        session = self.sessions.get(session_id)
        if session is None:
            if identity is None:
                raise SessionNotFoundError(session_id)
            return self.open_session(identity, session_id=session_id)
        if identity is not None and identity != session.identity:
            # Another caller's session id is treated as unknown
            logger.warning(f"Identity mismatch for session {session_id}")
            raise SessionNotFoundError(session_id)
        return session

    # ---- Turn handling ----

    async def handle_user_message(
        self,
        session_id: str,
        text: str,
        identity: Optional[Identity] = None
    ) -> AssistantResponse:
        """
        Process one user utterance end-to-end.

        Args:
            session_id: Conversation session id
            text: The user's utterance
            identity: Caller identity; required when the session is new

        Returns:
            AssistantResponse (text, clarification, preview or result)
        """
        session = self._get_session(session_id, identity)
        session.turn_count += 1
        language = detect_language(text, default=session.language)
        session.language = language
        logger.info(f"[{session.session_id}] turn {session.turn_count} ({language.value}): {text}")

        self._log_turn(session, "user", text)
        response = await self._process(session, text, language)
        session.add_turn(text, response.content)
        self._log_turn(session, "assistant", response.content, {
            "type": response.type.value,
            "tool": response.tool_name,
        })
        return response

    async def _process(self, session: ConversationSession, text: str, language: Language) -> AssistantResponse:
        try:
            answered = await self._handle_pending(session, text, language)
            if answered is not None:
                return answered
            return await self._respond(session, text, language)
        except ExpiredActionError as e:
            logger.info(f"Reply to expired {e.tool_name} ignored")
            return AssistantResponse(
                type=ResponseType.TEXT,
                content=translate("expired", language),
                language=language,
                tool_name=e.tool_name,
            )
        except Exception as e:
            logger.exception(f"Turn failed for session {session.session_id}: {e}")
            return AssistantResponse(
                type=ResponseType.ERROR,
                content=translate("generic_error", language),
                language=language,
            )

    async def _handle_pending(
        self,
        session: ConversationSession,
        text: str,
        language: Language
    ) -> Optional[AssistantResponse]:
        """
        Apply the next utterance to the open PendingAction, if any.

        Returns a response when the utterance was consumed as a reply, or
        None when it should be processed as a fresh request.
        """
        pending = session.pending_action
        if pending is not None and pending.is_expired(
            self.clock(),
            session.turn_count,
            self.settings.pending_action_ttl_seconds,
            self.settings.pending_action_max_turns,
        ):
            pending.transition(ActionState.EXPIRED)
            session.pending_action = None
            session.last_expired = pending
            logger.info(f"Pending {pending.tool_name} ({pending.id}) expired")
            pending = None

        intent = self.classifier.classify(text)

        if pending is None:
            expired = session.last_expired
            session.last_expired = None
            if expired is not None and intent != ReplyIntent.UNCLEAR:
                raise ExpiredActionError(expired.tool_name)
            return None

        if intent == ReplyIntent.AFFIRM:
            return await self._confirm(session, pending, language)

        pending.transition(ActionState.REJECTED)
        session.pending_action = None
        if intent == ReplyIntent.NEGATE:
            logger.info(f"Pending {pending.tool_name} ({pending.id}) rejected")
            return AssistantResponse(
                type=ResponseType.TEXT,
                content=translate("cancelled", language),
                language=language,
                tool_name=pending.tool_name,
                pending_action_id=pending.id,
            )

        # Anything else abandons the proposal and is handled as a new request
        logger.info(f"Pending {pending.tool_name} ({pending.id}) rejected by change of topic")
        return None

    async def _confirm(
        self,
        session: ConversationSession,
        pending: PendingAction,
        language: Language
    ) -> AssistantResponse:
        pending.transition(ActionState.CONFIRMED)
        session.pending_action = None
        tool = self.catalog.get(pending.tool_name)
        scope = self._execution_scope(session, tool, pending.resolved_args)
        logger.info(f"Pending {pending.tool_name} ({pending.id}) confirmed")

        try:
            result = await self.executor.execute(tool.name, pending.resolved_args, scope)
        except ExecutionError as e:
            logger.error(f"Confirmed {tool.name} failed: {e}")
            return AssistantResponse(
                type=ResponseType.ERROR,
                content=self.composer.render_failure(e.message, e.completed, language),
                language=language,
                tool_name=tool.name,
                pending_action_id=pending.id,
            )

        pending.transition(ActionState.EXECUTED)
        self._fold_entities(session, pending.resolved_entities)
        self._fold_result(session, result)
        return AssistantResponse(
            type=ResponseType.RESULT,
            content=self.composer.render_result(result, language),
            language=language,
            tool_name=tool.name,
            pending_action_id=pending.id,
            result=result,
        )

    async def _respond(self, session: ConversationSession, text: str, language: Language) -> AssistantResponse:
        """Ask the model what to do with a fresh utterance."""
        context = await self.context_builder.build(session)
        system_prompt = self.composer.build_system_prompt(
            self.context_builder.format(context),
            has_client=context.active_client is not None,
            language=language,
        )
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=text),
        ]

        try:
            response = await self.llm_client.chat(
                messages=messages,
                tools=self.catalog.schemas(),
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens
            )
        except MalformedResponseError as e:
            logger.error(f"Malformed model response: {e}")
            return self._apology(language)
        except Exception as e:
            logger.error(f"Language model call failed: {e}")
            return AssistantResponse(
                type=ResponseType.ERROR,
                content=translate("generic_error", language),
                language=language,
            )

        if not response.tool_calls:
            content = (response.content or "").strip()
            if not content:
                return self._apology(language)
            return AssistantResponse(type=ResponseType.TEXT, content=content, language=language)

        if len(response.tool_calls) > 1:
            logger.warning(f"Model requested {len(response.tool_calls)} tools; acting on the first only")
        call = response.tool_calls[0]

        try:
            tool = self.catalog.get(call.name)
        except UnknownToolError as e:
            logger.error(f"Model referenced unknown tool: {e.tool_name}")
            return self._apology(language)

        logger.info(f"Model requested {tool.kind.value} {tool.name} with {call.arguments}")
        try:
            args, resolved = await self._prepare_arguments(session, tool, call.arguments)
        except (AmbiguousEntityError, NoMatchError, DateParseError, SchemaValidationError) as e:
            return self._clarify(e, tool, language)

        if tool.kind == ToolKind.QUERY:
            return await self._run_query(session, tool, args, resolved, messages, call, language)
        return await self._propose(session, tool, args, resolved, language)

    async def _run_query(
        self,
        session: ConversationSession,
        tool: ToolDefinition,
        args: Dict[str, Any],
        resolved: Dict[str, List[ResolvedEntity]],
        messages: List[Message],
        call: ToolCall,
        language: Language
    ) -> AssistantResponse:
        scope = self._execution_scope(session, tool, args)
        try:
            result = await self.executor.execute(tool.name, args, scope)
        except ExecutionError as e:
            logger.error(f"Query {tool.name} failed: {e}")
            return AssistantResponse(
                type=ResponseType.ERROR,
                content=self.composer.render_failure(e.message, e.completed, language),
                language=language,
                tool_name=tool.name,
            )

        self._fold_entities(session, resolved)
        self._fold_result(session, result)

        narration = None
        if self.settings.narrate_query_results:
            narration = await self._narrate(messages, call, result)
        return AssistantResponse(
            type=ResponseType.RESULT,
            content=self.composer.render_query_result(result, narration, language),
            language=language,
            tool_name=tool.name,
            result=result,
        )

    async def _narrate(self, messages: List[Message], call: ToolCall, result: ExecutionResult) -> Optional[str]:
        """Let the model phrase a query result; None means use the executor summary."""
        follow_up = messages + [
            Message(role="assistant", content="", tool_calls=[call]),
            Message(
                role="tool",
                tool_call_id=call.id,
                content=json.dumps({"message": result.message, "data": result.data}, default=str),
            ),
        ]
        try:
            response = await self.llm_client.chat(
                messages=follow_up,
                tools=self.catalog.schemas(),
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens
            )
        except Exception as e:
            logger.warning(f"Narration failed, using executor summary: {e}")
            return None
        return response.content

    async def _propose(
        self,
        session: ConversationSession,
        tool: ToolDefinition,
        args: Dict[str, Any],
        resolved: Dict[str, List[ResolvedEntity]],
        language: Language
    ) -> AssistantResponse:
        now = self.clock()
        scope = self._execution_scope(session, tool, args)
        preview = await self.preview_builder.build(tool, args, resolved, scope, now.date())
        pending = PendingAction(
            tool_name=tool.name,
            resolved_args=args,
            resolved_entities=resolved,
            preview=preview,
            preview_text=self.composer.render_preview(preview, language),
            proposed_at=now,
            proposed_turn=session.turn_count,
        )
        session.pending_action = pending
        session.last_expired = None
        self._fold_entities(session, resolved)
        logger.info(f"Proposed {tool.name} ({pending.id}) awaiting confirmation")
        return AssistantResponse(
            type=ResponseType.CONFIRMATION_REQUIRED,
            content=pending.preview_text,
            language=language,
            tool_name=tool.name,
            pending_action_id=pending.id,
            preview=preview,
        )

    # ---- Argument preparation ----

    async def _prepare_arguments(
        self,
        session: ConversationSession,
        tool: ToolDefinition,
        raw_args: Optional[Dict[str, Any]]
    ) -> Tuple[Dict[str, Any], Dict[str, List[ResolvedEntity]]]:
        """
        Resolve references, inject the client, parse dates and validate.

        Returns:
            (validated arguments with entity ids, resolved entities per field)

        Raises:
            AmbiguousEntityError, NoMatchError, DateParseError, SchemaValidationError
        """
        args = dict(raw_args or {})
        scope = session.identity.scope()
        resolved: Dict[str, List[ResolvedEntity]] = {}
        entity_fields = tool.entity_fields()

        if tool.client_scoped:
            client = await self._resolve_client(session, tool, args.get("client"), scope)
            args["client"] = client.id
            resolved["client"] = [client]
            scope = scope.for_client(client.id)

        required = {
            name for name, info in tool.arguments_model.model_fields.items() if info.is_required()
        }
        list_fields = tool.list_fields()
        for name, entity_type in entity_fields.items():
            if name == "client":
                continue
            value = args.get(name)
            if value is None or value == "" or value == []:
                remembered = self._recall_missing(session, entity_type) if name in required else None
                if remembered is None:
                    continue
                value = remembered.id
                logger.info(f"Filled missing {name} from memory: {remembered.display_name}")

            if name in list_fields and not isinstance(value, list):
                value = [value]
            if isinstance(value, list):
                entities = []
                for item in value:
                    entities.extend(await self._resolve_reference(session, item, entity_type, scope, True))
                entities = list({e.id: e for e in entities}.values())
                args[name] = [e.id for e in entities]
            else:
                entities = await self._resolve_reference(session, value, entity_type, scope, False)
                if len(entities) > 1:
                    raise AmbiguousEntityError(str(value), entity_type.value, entities)
                args[name] = entities[0].id
            resolved[name] = entities

        today = self.clock().date()
        for name, kind in tool.parse_fields().items():
            value = args.get(name)
            if value is None or value == "":
                continue
            try:
                if kind == "time":
                    args[name] = parse_time(str(value))
                else:
                    args[name] = parse_natural_date(str(value), today).isoformat()
            except DateParseError as e:
                raise DateParseError(e.text, field=name) from e

        try:
            model = tool.arguments_model.model_validate(args)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
            reason = "missing" if error.get("type") == "missing" else error.get("msg", "invalid value")
            raise SchemaValidationError(tool.name, field, reason) from e

        return model.model_dump(), resolved

    async def _resolve_client(
        self,
        session: ConversationSession,
        tool: ToolDefinition,
        reference: Any,
        scope: Scope
    ) -> ResolvedEntity:
        if reference is not None and str(reference).strip():
            client = (await self._resolve_reference(session, reference, EntityType.CLIENT, scope, False))[0]
            if client.id != session.active_client_id:
                logger.info(f"Active client set to {client.display_name} ({client.id})")
                session.active_client_id = client.id
            return client

        if session.active_client_id:
            try:
                record = await self.store.get(EntityType.CLIENT, session.active_client_id, scope)
            except EntityNotFoundError:
                logger.warning(f"Active client {session.active_client_id} no longer in scope")
                session.active_client_id = None
            else:
                return ResolvedEntity(
                    entity_type=EntityType.CLIENT,
                    id=record["id"],
                    display_name=display_name(EntityType.CLIENT, record),
                )

        raise SchemaValidationError(tool.name, "client", "no client selected")

    async def _resolve_reference(
        self,
        session: ConversationSession,
        value: Any,
        entity_type: EntityType,
        scope: Scope,
        expects_list: bool
    ) -> List[ResolvedEntity]:
        """Resolve a pronoun from memory, or a name or id through the resolver."""
        text = str(value).strip()
        if pronoun_number(text):
            entities = session.memory.resolve_pronoun(text, entity_type, expects_list=expects_list)
            if not entities:
                raise NoMatchError(text, entity_type.value)
            # Remembered entities are re-checked against the current scope
            for entity in entities:
                try:
                    await self.store.get(entity.entity_type, entity.id, scope)
                except EntityNotFoundError:
                    raise NoMatchError(text, entity_type.value)
            logger.info(f"Pronoun '{text}' resolved to {[e.id for e in entities]}")
            return entities

        resolution = await self.resolver.resolve(text, entity_type, scope, memory=session.memory)
        if isinstance(resolution, ResolvedMatch):
            return [resolution.entity]
        if isinstance(resolution, AmbiguousMatch):
            raise AmbiguousEntityError(text, entity_type.value, resolution.candidates)
        raise NoMatchError(text, entity_type.value)

    @staticmethod
    def _recall_missing(session: ConversationSession, entity_type: EntityType) -> Optional[ResolvedEntity]:
        entities = session.memory.resolve_pronoun("it", entity_type)
        return entities[0] if entities else None

    def _execution_scope(self, session: ConversationSession, tool: ToolDefinition, args: Dict[str, Any]) -> Scope:
        client_id = args.get("client") if tool.client_scoped else None
        return session.identity.scope(client_id)

    # ---- Memory ----

    @staticmethod
    def _fold_entities(session: ConversationSession, resolved: Dict[str, List[ResolvedEntity]]):
        """Remember the entities the user referred to this turn.

        The client is tracked as the active client rather than as a memory role.
        """
        for name, entities in resolved.items():
            if name != "client":
                session.memory.remember_entities(entities)

    @staticmethod
    def _fold_result(session: ConversationSession, result: ExecutionResult):
        """Remember the records a tool touched; a new client comes into focus."""
        refs = {}
        for ref in ([result.primary] if result.primary else []) + result.affected:
            refs.setdefault(ref.id, ref)
        entities = [
            ResolvedEntity(entity_type=ref.entity_type, id=ref.id, display_name=ref.display_name)
            for ref in refs.values()
        ]
        session.memory.remember_entities(entities)

        if result.primary is not None and result.primary.entity_type == EntityType.CLIENT:
            session.active_client_id = result.primary.id

    # ---- Error recovery ----

    def _clarify(self, error: Exception, tool: ToolDefinition, language: Language) -> AssistantResponse:
        """Turn a recoverable resolution or validation error into a question."""
        response = AssistantResponse(
            type=ResponseType.CLARIFICATION,
            content="",
            language=language,
            tool_name=tool.name,
        )

        if isinstance(error, AmbiguousEntityError):
            logger.info(f"Asking to disambiguate '{error.query}' between {[c.id for c in error.candidates]}")
            response.content = self.composer.render_options(error.query, error.entity_type, error.candidates, language)
            response.options = list(error.candidates)
        elif isinstance(error, NoMatchError):
            logger.info(f"No {error.entity_type} for '{error.query}'")
            key = "no_reference" if pronoun_number(error.query) else "no_match"
            response.content = translate(key, language, entity=entity_label(error.entity_type, language), query=error.query)
        elif isinstance(error, DateParseError):
            logger.info(f"Unparseable date '{error.text}' for {error.field}")
            response.content = translate("date_parse", language, text=error.text)
            response.missing_field = error.field
        else:
            logger.info(f"{error}")
            response.missing_field = error.field
            if error.field == "client":
                response.content = translate("no_client", language)
            elif error.reason == "missing":
                response.content = translate("missing_field", language, field=humanize_field(error.field))
            else:
                label = "the request" if error.field == "arguments" else humanize_field(error.field)
                response.content = translate("invalid_field", language, field=label, reason=error.reason)
        return response

    @staticmethod
    def _apology(language: Language) -> AssistantResponse:
        return AssistantResponse(type=ResponseType.TEXT, content=translate("apology", language), language=language)

    def _log_turn(self, session: ConversationSession, role: str, content: str, metadata: Optional[dict] = None):
        if not self.conversation_store:
            return
        try:
            self.conversation_store.add_turn(session.session_id, role, content, metadata)
        except Exception as e:
            logger.error(f"Failed to log {role} turn for {session.session_id}: {e}")
