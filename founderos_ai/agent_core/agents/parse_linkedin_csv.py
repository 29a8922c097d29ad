from __future__ import annotations

"""LinkedIn connections import agent.

Parses rows of a LinkedIn "Connections" CSV export (already split into
dicts keyed by the export's column headers) into contact drafts. With
``enrichWithAI`` each batch of rows is tagged by the model; a batch whose
enrichment fails keeps the basic parse.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple

from pydantic import Field

from ..errors import AgentExecutionError
from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

logger = logging.getLogger(__name__)

BATCH_SIZE = 20


class LinkedInCSVInput(AgentInput):
    csv_data: List[Dict[str, Any]] = Field(default_factory=list, alias="csvData")
    enrich_with_ai: bool = Field(default=True, alias="enrichWithAI")


def _cell(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return value.strip() if isinstance(value, str) else ""


def basic_parse(row: Mapping[str, Any]) -> Dict[str, Any]:
    name = f"{_cell(row, 'First Name')} {_cell(row, 'Last Name')}".strip()
    return {
        "name": name or "Unknown",
        "email": _cell(row, "Email Address") or None,
        "company": _cell(row, "Company") or None,
        "position": _cell(row, "Position") or None,
        "tags": [],
        "connection_strength": "weak",
        "stage": "contacted",
        "can_help_with": [],
        "helpful_for": "",
    }


def _merge(row: Mapping[str, Any], enrichment: Mapping[str, Any]) -> Dict[str, Any]:
    contact = basic_parse(row)
    for key in ("tags", "connection_strength", "stage", "can_help_with", "helpful_for"):
        if enrichment.get(key):
            contact[key] = enrichment[key]
    return contact


class ParseLinkedInCSVAgent(BaseAgent):
    id = "parse-linkedin-csv"
    name = "Parse LinkedIn Network"
    description = "Import and enrich LinkedIn connections from CSV export"
    category = "Network Management"
    icon = "💼"
    input_model = LinkedInCSVInput
    error_prefix = "Failed to parse LinkedIn CSV"
    temperature = 0.5
    max_tokens = 2000

    async def run(self, params: LinkedInCSVInput, context: "ExecutionContext") -> AgentResult:
        rows = params.csv_data
        if not rows:
            return AgentResult.failure("No CSV data provided")

        profile = await context.profile() if params.enrich_with_ai else {}
        contacts: List[Dict[str, Any]] = []
        tokens_used = 0
        for start in range(0, len(rows), BATCH_SIZE):
            batch = rows[start : start + BATCH_SIZE]
            if params.enrich_with_ai:
                enriched, tokens = await self._enrich_batch(batch, profile, context)
                contacts.extend(enriched)
                tokens_used += tokens
            else:
                contacts.extend(basic_parse(row) for row in batch)

        companies = list(dict.fromkeys(c["company"] for c in contacts if c["company"]))
        with_emails = sum(1 for c in contacts if c["email"])
        return AgentResult.ok(
            {
                "contacts": contacts,
                # TODO: classify organization industries once a company data source exists
                "organizations": [{"name": name, "industry": None} for name in companies],
                "stats": {
                    "totalParsed": len(contacts),
                    "withEmails": with_emails,
                    "withoutEmails": len(contacts) - with_emails,
                    "uniqueCompanies": len(companies),
                },
            },
            tokens_used=tokens_used or None,
        )

    async def _enrich_batch(
        self, batch: List[Dict[str, Any]], profile: Dict[str, Any], context: "ExecutionContext"
    ) -> Tuple[List[Dict[str, Any]], int]:
        system_prompt = (
            "You are an expert at analyzing professional networks and identifying how contacts can be helpful "
            "for early-stage founders.\n"
            "For each LinkedIn connection suggest 2-4 tags, estimate connection strength (weak/medium/strong), "
            "identify what they could help with and suggest a relationship stage.\n\n"
            "Context about the user:\n"
            f"- Goal: {profile.get('current_goal') or 'Building a startup'}\n"
            f"- Stage: {profile.get('stage') or 'Early stage'}\n"
            f"- Focus: {profile.get('focus_area') or 'Technology'}"
        )
        listing = [
            {
                "id": idx,
                "name": f"{_cell(row, 'First Name')} {_cell(row, 'Last Name')}".strip(),
                "company": _cell(row, "Company"),
                "position": _cell(row, "Position"),
            }
            for idx, row in enumerate(batch)
        ]
        user_prompt = "\n".join(
            [
                "Analyze these LinkedIn connections and enrich each with helpful metadata:",
                "",
                json.dumps(listing, indent=2),
                "",
                'Return JSON: {"contacts": [{"id": <number>, "tags": [...], '
                '"connection_strength": "weak|medium|strong", "stage": "contacted|engaged|active|champion", '
                '"can_help_with": [...], "helpful_for": "<max 100 chars>"}]}',
            ]
        )
        try:
            completion = await self.call_model(context, system_prompt, user_prompt)
            data = self.parse_json(completion.text)
        except AgentExecutionError as e:
            logger.warning(f"LinkedIn enrichment failed for user {context.user_id}, using basic parse: {e}")
            return [basic_parse(row) for row in batch], 0

        by_id = {e.get("id"): e for e in data.get("contacts") or [] if isinstance(e, dict)}
        return [_merge(row, by_id.get(idx, {})) for idx, row in enumerate(batch)], completion.tokens_used or 0
