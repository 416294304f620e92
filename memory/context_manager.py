"""Conversation context builder for prompt assembly."""

import logging
from typing import Optional

from schemas.entities import EntityType, Scope
from store.entity_store import EntityStore
from store.records import display_name
from utils.errors import EntityNotFoundError
from utils.formatting import format_money
from .models import ClientSnapshot, ConversationContext, ConversationSession

logger = logging.getLogger(__name__)


class ContextBuilder:
    """Builds the bounded context injected into every system prompt."""

    def __init__(self, store: EntityStore, max_turns: int = 10):
        """
        Initialize context builder.

        Args:
            store: Entity store used to summarize the active client
            max_turns: Maximum user/assistant pairs included
        """
        self.store = store
        self.max_turns = max_turns

    async def build(self, session: ConversationSession) -> ConversationContext:
        """
        Snapshot a session into a ConversationContext.

        Args:
            session: The live conversation session

        Returns:
            ConversationContext with at most ``max_turns`` recent pairs
        """
        active_client = None
        if session.active_client_id:
            active_client = await self._client_snapshot(
                Scope(company_id=session.company_id, client_id=session.active_client_id)
            )

        turns = list(session.recent_turns)[-self.max_turns:] if self.max_turns else []
        pending = session.pending_action
        return ConversationContext(
            company_id=session.company_id,
            user_id=session.user_id,
            active_client_id=session.active_client_id,
            active_client=active_client,
            recent_turns=turns,
            entity_memory=session.memory.summary(),
            pending_tool=pending.tool_name if pending and pending.is_open else None,
        )

    async def _client_snapshot(self, scope: Scope) -> Optional[ClientSnapshot]:
        try:
            client = await self.store.get(EntityType.CLIENT, scope.client_id, scope)
        except EntityNotFoundError:
            logger.warning(f"Active client {scope.client_id} not found for company {scope.company_id}")
            return None

        guests = await self.store.query(EntityType.GUEST, scope)
        budget_items = await self.store.query(EntityType.BUDGET_ITEM, scope)
        statuses = [g.get("rsvp_status") or "pending" for g in guests]

        return ClientSnapshot(
            id=client["id"],
            name=display_name(EntityType.CLIENT, client),
            wedding_date=client.get("wedding_date"),
            venue=client.get("venue"),
            budget=client.get("budget"),
            guest_count=client.get("guest_count"),
            wedding_type=client.get("wedding_type"),
            status=client.get("status"),
            guests_total=len(guests),
            guests_confirmed=statuses.count("confirmed"),
            guests_pending=statuses.count("pending"),
            guests_declined=statuses.count("declined"),
            budget_paid=sum(float(b.get("paid_amount") or 0) for b in budget_items),
        )

    def format(self, context: ConversationContext) -> str:
        """
        Render a context as prompt text.

        Output depends only on ``context``, so identical inputs always give
        identical prompts.
        """
        lines = []
        client = context.active_client
        if client is None:
            lines.extend([
                "No client selected. The user can:",
                "- Create a new client",
                "- Search for an existing client",
                "- Ask general wedding planning questions",
            ])
        else:
            budget = client.budget or 0
            lines.extend([
                f"## Current Wedding: {client.name} (client id: {client.id})",
                "",
                "### Wedding Details",
                f"- Wedding Date: {client.wedding_date or 'Not set'}",
                f"- Venue: {client.venue or 'Not set'}",
                f"- Status: {client.status or 'planning'}",
                f"- Wedding Type: {client.wedding_type or 'traditional'}",
                "",
                "### Guest Summary",
                f"- Total Invited: {client.guests_total}",
                f"- Confirmed: {client.guests_confirmed}",
                f"- Pending: {client.guests_pending}",
                f"- Declined: {client.guests_declined}",
                "",
                "### Budget Summary",
                f"- Total Budget: {format_money(budget)}",
                f"- Paid: {format_money(client.budget_paid)}",
                f"- Remaining: {format_money(budget - client.budget_paid)}",
            ])

        if context.entity_memory:
            lines.extend(["", "### Recently Referenced"])
            lines.extend(f"- {line}" for line in context.entity_memory)

        if context.recent_turns:
            lines.extend(["", "### Recent Activity"])
            for turn in context.recent_turns:
                lines.append(f"- USER: {turn.user}")
                lines.append(f"  ASSISTANT: {turn.assistant}")

        if context.pending_tool:
            lines.extend(["", f"### Awaiting Confirmation: {context.pending_tool}"])

        return "\n".join(lines)
