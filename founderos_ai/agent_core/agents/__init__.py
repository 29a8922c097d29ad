"""Built-in agents.

Every agent here is a ``BaseAgent`` subclass; ``definition()`` turns an
instance into the ``AgentDefinition`` the registry stores.
"""

from .analyze_customer_feedback import AnalyzeCustomerFeedbackAgent
from .base import AgentDefinition, AgentInput, BaseAgent, UserContext
from .cap_table_advisor import CapTableAdvisorAgent
from .draft_investor_email import DraftInvestorEmailAgent
from .fundraising_crm import FundraisingCRMAgent
from .generate_product_spec import GenerateProductSpecAgent
from .investor_readiness import InvestorReadinessAgent
from .investor_update_drafting import InvestorUpdateDraftingAgent
from .parse_linkedin_csv import ParseLinkedInCSVAgent
from .product_market_fit_tracker import ProductMarketFitTrackerAgent
from .progress_analyzer import ProgressAnalyzerAgent
from .strategic_planner import StrategicPlannerAgent

BUILTIN_AGENTS = (
    StrategicPlannerAgent,
    DraftInvestorEmailAgent,
    GenerateProductSpecAgent,
    AnalyzeCustomerFeedbackAgent,
    ProgressAnalyzerAgent,
    InvestorReadinessAgent,
    CapTableAdvisorAgent,
    FundraisingCRMAgent,
    InvestorUpdateDraftingAgent,
    ProductMarketFitTrackerAgent,
    ParseLinkedInCSVAgent,
)

__all__ = [
    "AgentDefinition",
    "AgentInput",
    "BaseAgent",
    "UserContext",
    "BUILTIN_AGENTS",
    "AnalyzeCustomerFeedbackAgent",
    "CapTableAdvisorAgent",
    "DraftInvestorEmailAgent",
    "FundraisingCRMAgent",
    "GenerateProductSpecAgent",
    "InvestorReadinessAgent",
    "InvestorUpdateDraftingAgent",
    "ParseLinkedInCSVAgent",
    "ProductMarketFitTrackerAgent",
    "ProgressAnalyzerAgent",
    "StrategicPlannerAgent",
]
