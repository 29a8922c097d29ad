from __future__ import annotations

"""Product requirements document agent.

Builds a markdown PRD for a roadmap item (looked up by id) or for a feature
described directly in the input.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext


class ProductSpecInput(AgentInput):
    roadmap_item_id: Optional[str] = Field(default=None, alias="roadmapItemId")
    feature_title: Optional[str] = Field(default=None, alias="featureTitle")
    feature_description: Optional[str] = Field(default=None, alias="featureDescription")
    include_user_stories: bool = Field(default=False, alias="includeUserStories")
    include_acceptance_criteria: bool = Field(default=False, alias="includeAcceptanceCriteria")


def render_sections(sections: List[Dict[str, Any]]) -> str:
    return "\n\n".join(f"## {s.get('heading', '')}\n\n{s.get('content', '')}" for s in sections if isinstance(s, dict))


class GenerateProductSpecAgent(BaseAgent):
    id = "generate-product-spec"
    name = "Generate Product Spec"
    description = "Create detailed product specification documents from roadmap items"
    category = "Product"
    icon = "📋"
    input_model = ProductSpecInput
    error_prefix = "Failed to generate product spec"
    temperature = 0.6
    max_tokens = 3000

    async def run(self, params: ProductSpecInput, context: "ExecutionContext") -> AgentResult:
        user = await self.load_user_context(context)
        profile = user.profile

        title = params.feature_title or "New Feature"
        description = params.feature_description or ""
        if params.roadmap_item_id:
            item = next((i for i in user.roadmap_items if i.get("id") == params.roadmap_item_id), None)
            if item is not None:
                title = item.get("title") or title
                description = item.get("description") or ""

        extras = []
        if params.include_user_stories:
            extras.append("User Stories")
        if params.include_acceptance_criteria:
            extras.append("Acceptance Criteria")

        system_prompt = (
            "You are a senior product manager who writes clear, comprehensive product specifications.\n"
            "Create a Product Requirements Document covering overview and objectives, user personas and use "
            "cases, detailed feature specifications, technical requirements and success metrics."
        )
        user_prompt = "\n".join(
            [
                f"Company: {profile.get('company_name') or 'Startup'}",
                f"Product: {profile.get('building_description') or 'Not described'}",
                f"Target market: {profile.get('target_market') or 'Not specified'}",
                "",
                f"Feature: {title}",
                f"Description: {description or 'No description provided'}",
                "",
                'Return JSON: {"title": "...", "sections": [{"heading": "...", "content": "markdown"}]}',
                "Sections: Overview, Objectives, User Personas, Functional Requirements, Technical Requirements, "
                "Success Metrics" + "".join(f", {e}" for e in extras),
            ]
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        doc = self.parse_json(completion.text)
        sections = [s for s in (doc.get("sections") or []) if isinstance(s, dict)]
        content = render_sections(sections)

        document = {
            "title": doc.get("title") or title,
            "content": content,
            "format": "markdown",
            "sections": sections,
        }
        return AgentResult.ok(
            {"document": document, "wordCount": len(content.split())},
            tokens_used=completion.tokens_used,
        )
