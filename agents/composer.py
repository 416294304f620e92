"""Response composer: system prompt, previews, results and recovery messages."""

from typing import Any, Dict, List, Optional

from schemas.actions import ActionPreview, CascadeRecord, ExecutionResult
from schemas.context import Language
from schemas.entities import ResolvedEntity
from utils.formatting import format_money, humanize_field
from .localization import translate, entity_label


class ResponseComposer:
    """Composes the prompt sent to the model and the text sent to the user."""

    SYSTEM_PROMPT = """You are an expert wedding planning assistant for WeddingFlow, a professional wedding planning software. You help wedding planners manage their clients' weddings through natural language commands.

## Your Role
- Help wedding planners manage wedding data efficiently
- Execute commands through the available tools
- Provide clear, actionable responses

## Language Support
You MUST respond in the same language the user writes in. You support English, Hindi (हिंदी), Spanish (Español), French (Français), German (Deutsch), Japanese (日本語) and Chinese (中文).

## Tool Usage Rules

### ALWAYS use tools for data operations
- Creating or updating any data requires a tool
- Never make up data or claim you've done something without using a tool
- Call at most one tool per reply

### Query vs Mutation
- Queries (get_*, search_*, sync_*) execute immediately and show results
- Mutations (create_*, update_*, add_*, shift_*, check_in_*, assign_*, bulk_*) are previewed and require the user's confirmation; the system handles the preview, so just call the tool

### Entity References
- Pass names exactly as the user wrote them ("Priya", "Raj Kumar"); the system resolves them
- Pass pronouns as written ("them", "it") when the user refers back to something
- Dates and times can be natural language: "next Saturday", "June 15", "in 2 weeks", "4pm"
- Leave the client argument out to use the client currently in focus

## Multi-Turn Conversations
- When required information is missing, ask one or two short follow-up questions instead of guessing
- Use the Recently Referenced and Recent Activity sections to avoid asking for information already given

## Safety Rules
- Never claim a mutation is done before the user confirms it
- Only work with the current company's data
- Be warm and professional; wedding planning is personal"""

    def build_system_prompt(self, context_text: str, has_client: bool, language: Language) -> str:
        """
        Build the system prompt with the formatted conversation context.

        Args:
            context_text: Output of ContextBuilder.format
            has_client: Whether a client is in focus
            language: Detected language of the current utterance
        """
        if has_client:
            actions = [
                "- Add or update guests for this wedding",
                "- Manage events and the timeline",
                "- Update vendor information",
                "- Track budget and payments",
                "- Query any wedding data",
            ]
        else:
            actions = [
                "- Create a new client/wedding",
                "- Search for existing clients",
                "- Answer general wedding planning questions",
            ]

        return "\n".join([
            self.SYSTEM_PROMPT,
            "",
            "## Current Context",
            "",
            context_text,
            "",
            "## Available Actions",
            "",
            "Based on the current context, you can:",
            *actions,
            "",
            f"The user is writing in language code '{language.value}'. Reply in that language.",
        ])

    def render_preview(self, preview: ActionPreview, language: Language) -> str:
        """Render a mutation preview ending in an explicit confirmation question."""
        description = preview.description
        if language == Language.ENGLISH and description:
            description = description[0].lower() + description[1:]

        parts = [translate("preview_intro", language, description=description), ""]
        parts.append(f"**{translate('preview_heading', language)}:**")
        for field in preview.fields:
            parts.append(f"- {humanize_field(field.name)}: {field.display_value}")

        if preview.details:
            parts.extend(["", f"**{translate('details_heading', language)}:**"])
            parts.extend(f"- {detail}" for detail in preview.details)

        if preview.cascade_effects:
            parts.extend(["", f"**{translate('cascade_heading', language)}:**"])
            parts.extend(f"- {effect}" for effect in preview.cascade_effects)

        if preview.warnings:
            parts.extend(["", f"**{translate('warnings_heading', language)}:**"])
            parts.extend(f"- {warning}" for warning in preview.warnings)

        parts.extend(["", translate("proceed", language)])
        return "\n".join(parts)

    def render_result(self, result: ExecutionResult, language: Language) -> str:
        """Render a successful mutation, listing every cascade record."""
        text = translate("done", language, message=result.message)
        if result.cascade_results:
            lines = [text, "", f"**{translate('also_created', language)}:**"]
            lines.extend(self._cascade_lines(result.cascade_results))
            text = "\n".join(lines)
        return text

    def render_failure(self, message: str, completed: List[CascadeRecord], language: Language) -> str:
        """Render an execution failure, including writes that did complete."""
        text = translate("execution_failed", language, message=message.rstrip("."))
        if completed:
            lines = [text, "", f"**{translate('partial_completed', language)}:**"]
            lines.extend(self._cascade_lines(completed))
            text = "\n".join(lines)
        return text

    def render_options(
        self,
        query: str,
        entity_type: str,
        candidates: List[ResolvedEntity],
        language: Language
    ) -> str:
        """Clarifying question listing every candidate for an ambiguous reference."""
        lines = [translate("ambiguous", language, entity=entity_label(entity_type, language), query=query)]
        for i, candidate in enumerate(candidates, 1):
            lines.append(f"{i}. {candidate.display_name}")
        return "\n".join(lines)

    def render_query_result(self, result: ExecutionResult, narration: Optional[str], language: Language) -> str:
        """Model narration when there is one, otherwise a summary in the user's language."""
        if narration and narration.strip():
            return narration.strip()
        values = self._summary_values(result)
        if values is not None:
            return translate(f"summary_{result.tool_name}", language, **values)
        return translate("query_result", language, message=result.message)

    @staticmethod
    def _summary_values(result: ExecutionResult) -> Optional[Dict[str, Any]]:
        data = result.data
        if result.tool_name == "get_budget_overview":
            return {
                "total": format_money(data["total_budget"]),
                "paid": format_money(data["paid"]),
                "remaining": format_money(data["remaining"]),
                "percent": data["percent_used"],
            }
        if result.tool_name == "get_guest_stats":
            return {key: data[key] for key in ("total", "confirmed", "pending", "declined")}
        if result.tool_name == "sync_hotel_guests":
            return {"hotels": len(data["hotels"]), "guests": data["total_guests"]}
        return None

    @staticmethod
    def _cascade_lines(records: List[CascadeRecord]) -> List[str]:
        return [f"- {record.action} ({record.entity_id})" for record in records]
