from __future__ import annotations

"""Customer feedback analysis agent."""

from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

FEEDBACK_DOCUMENT_KEYWORDS = ("interview", "feedback", "customer")
MAX_FEEDBACK_DOCUMENTS = 3

NO_FEEDBACK_ERROR = "No feedback text provided and no customer feedback documents found"


class CustomerFeedbackInput(AgentInput):
    feedback_text: Optional[str] = Field(default=None, alias="feedbackText")
    source: Literal["interview", "survey", "support", "other"] = "other"
    include_sentiment: bool = Field(default=True, alias="includeSentiment")
    include_action_items: bool = Field(default=True, alias="includeActionItems")


def collect_feedback_documents(documents: List[Dict[str, Any]]) -> str:
    """Join the most relevant feedback documents into one text block."""
    matches = [
        d for d in documents if any(k in (d.get("name") or "").lower() for k in FEEDBACK_DOCUMENT_KEYWORDS)
    ][:MAX_FEEDBACK_DOCUMENTS]
    return "\n\n---\n\n".join(f"{d.get('name')}:\n{d.get('content') or ''}" for d in matches)


class AnalyzeCustomerFeedbackAgent(BaseAgent):
    id = "analyze-customer-feedback"
    name = "Analyze Customer Feedback"
    description = "Extract insights, pain points, and action items from customer conversations"
    category = "Customer Development"
    icon = "🔍"
    input_model = CustomerFeedbackInput
    error_prefix = "Failed to analyze customer feedback"
    temperature = 0.5
    max_tokens = 2500

    async def run(self, params: CustomerFeedbackInput, context: "ExecutionContext") -> AgentResult:
        text = (params.feedback_text or "").strip()
        profile = await context.profile()
        if not text:
            text = collect_feedback_documents(await context.data_store.select("documents"))
        if not text:
            return AgentResult.failure(NO_FEEDBACK_ERROR)

        asks = []
        if params.include_sentiment:
            asks.append("Include detailed sentiment analysis.")
        if params.include_action_items:
            asks.append("Include specific, actionable next steps.")

        system_prompt = (
            "You are an expert product researcher specializing in qualitative customer feedback analysis.\n"
            "Identify key themes, extract pain points with severity, list feature requests, assess sentiment "
            "and recommend concrete actions."
        )
        user_prompt = "\n".join(
            [
                f"PRODUCT: {profile.get('building_description') or 'Not described'}",
                f"SOURCE: {params.source}",
                "",
                "FEEDBACK:",
                text,
                "",
                'Return JSON: {"summary": "...", "insights": [...], "recommendations": [...], '
                '"sentiment": "positive|neutral|negative", '
                '"painPoints": [{"point": "...", "severity": "high|medium|low", "frequency": 1}], '
                '"featureRequests": [...], '
                '"actionItems": [{"action": "...", "priority": "high|medium|low", "category": "..."}]}',
                *asks,
            ]
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        data = self.parse_json(completion.text)
        analysis = {
            "summary": data.get("summary") or "",
            "insights": data.get("insights") or [],
            "recommendations": data.get("recommendations") or [],
            "data": {"source": params.source, "analyzedAt": context.now.isoformat()},
        }
        return AgentResult.ok(
            {
                "analysis": analysis,
                "sentiment": data.get("sentiment") or "neutral",
                "painPoints": data.get("painPoints") or [],
                "featureRequests": data.get("featureRequests") or [],
                "actionItems": data.get("actionItems") or [],
            },
            tokens_used=completion.tokens_used,
        )
