from __future__ import annotations

"""Fundraising CRM agent.

Builds a VC list from the ``investors`` table plus investor contacts, then
either classifies every conversation (``analyze``) or drafts a follow-up
email to one VC (``draft-followup``).
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent
from .metrics import raising_round

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

ANALYZED_VC_LIMIT = 10
AVG_CHECK_SIZE = 100000
_VC_FIRM_MARKERS = ("capital", "ventures")


class FundraisingCRMInput(AgentInput):
    vc_id: Optional[str] = Field(default=None, alias="vcId")
    action: Literal["analyze", "draft-followup"] = "analyze"


def _is_vc_contact(contact: Dict[str, Any]) -> bool:
    if contact.get("investor_type") == "VC" or contact.get("investor_category") == "VC":
        return True
    company = (contact.get("company") or "").lower()
    return any(marker in company for marker in _VC_FIRM_MARKERS)


def build_vc_list(investors: List[Dict[str, Any]], contacts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    vcs = [
        {
            "id": inv.get("id"),
            "name": inv.get("name"),
            "firm": inv.get("firm") or inv.get("investor_type") or "Unknown",
            "lastContact": inv.get("investment_date") or inv.get("commitment_date"),
            "type": "investor",
        }
        for inv in investors
    ]
    vcs += [
        {
            "id": c.get("id"),
            "name": c.get("name"),
            "firm": c.get("company") or "Unknown",
            "lastContact": c.get("last_contacted") or c.get("created_at"),
            "type": "contact",
        }
        for c in contacts
        if _is_vc_contact(c)
    ]
    return vcs


def forecast(conversations: List[Dict[str, Any]]) -> Dict[str, int]:
    high = sum(1 for c in conversations if c.get("priority") == "high")
    low = sum(1 for c in conversations if c.get("priority") == "low")
    return {
        "estimatedRaise": round(high * AVG_CHECK_SIZE * 0.3 + low * AVG_CHECK_SIZE * 0.1),
        "probability": min(95, high * 10 + low * 5),
    }


def _contact_date(value: Any, missing: str) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value) if value else missing


class FundraisingCRMAgent(BaseAgent):
    id = "fundraising-crm"
    name = "Fundraising CRM"
    description = "Track VC conversations and automate follow-up outreach"
    category = "Fundraising"
    icon = "💼"
    input_model = FundraisingCRMInput
    error_prefix = "Failed to analyze fundraising CRM"
    temperature = 0.3
    max_tokens = 500

    async def run(self, params: FundraisingCRMInput, context: "ExecutionContext") -> AgentResult:
        store = context.data_store
        vcs = build_vc_list(await store.select("investors"), await store.select("contacts"))
        rounds = await store.select("funding_rounds")

        if params.action == "draft-followup" and params.vc_id:
            vc = next((v for v in vcs if v["id"] == params.vc_id), None)
            if vc is None:
                return AgentResult.failure("VC not found")
            return await self._draft_followup(vc, rounds, context)
        return await self._analyze(vcs, rounds, context)

    async def _draft_followup(
        self, vc: Dict[str, Any], rounds: List[Dict[str, Any]], context: "ExecutionContext"
    ) -> AgentResult:
        profile = await context.profile()
        company = profile.get("company_name") or profile.get("name") or "Startup"
        current = raising_round(rounds)
        system_prompt = (
            "You are an expert fundraising advisor. Draft concise, professional follow-up emails (150-200 words) "
            "that are respectful, value-add focused, and include a clear next step."
        )
        user_prompt = "\n".join(
            [
                "Draft a follow-up email to:",
                f"VC: {vc['name']}",
                f"Firm: {vc['firm']}",
                f"Last contact: {_contact_date(vc['lastContact'], 'Not specified')}",
                "",
                f"Company: {company}",
                f"Stage: {current.get('round_name') if current else 'Early stage'}",
                "",
                'Return JSON: {"subject": "Follow-up: <brief subject>", "body": "..."}',
            ]
        )
        completion = await self.call_model(context, system_prompt, user_prompt, temperature=0.7, max_tokens=300)
        email = self.parse_json(completion.text)
        return AgentResult.ok(
            {
                "conversations": [],
                "followUpEmail": {
                    "subject": email.get("subject") or f"Follow-up: {company}",
                    "body": email.get("body") or "",
                    "to": "",
                    "cc": [],
                },
            },
            tokens_used=completion.tokens_used,
        )

    async def _analyze(
        self, vcs: List[Dict[str, Any]], rounds: List[Dict[str, Any]], context: "ExecutionContext"
    ) -> AgentResult:
        system_prompt = (
            "You are a fundraising CRM analyzer. Categorize VC conversations into stages and provide next steps. "
            "Keep analysis brief (max 50 words per VC)."
        )
        lines = ["Analyze these VC conversations:", ""]
        for i, vc in enumerate(vcs[:ANALYZED_VC_LIMIT], start=1):
            lines.append(f"{i}. {vc['name']} ({vc['firm']})")
            lines.append(f"   Last contact: {_contact_date(vc['lastContact'], 'Never')}")
        if rounds:
            current = raising_round(rounds)
            lines += ["", f"Current fundraising: {current.get('round_name') if current else 'None'}"]
        lines += [
            "",
            "For each VC, determine:",
            "- Stage: interested | meeting | follow-up | ghosted",
            "- Priority: high | low",
            "- Next steps: brief actionable items",
            "",
            'Return JSON: {"conversations": [{"name": "...", "firm": "...", "lastContact": "...", '
            '"stage": "interested|meeting|follow-up|ghosted", "priority": "high|low", "nextSteps": [...]}]}',
        ]
        completion = await self.call_model(context, system_prompt, "\n".join(lines))
        data = self.parse_json(completion.text)
        conversations = [c for c in data.get("conversations") or [] if isinstance(c, dict)]
        return AgentResult.ok(
            {"conversations": conversations, "forecast": forecast(conversations)},
            tokens_used=completion.tokens_used,
        )
