from __future__ import annotations

"""Agent definition and the base class for built-in agents.

An agent is a named, categorized unit of work: it takes a JSON-like input and
an ``ExecutionContext`` and returns an ``AgentResult``. The registry only sees
``AgentDefinition`` values, so an agent can be a plain async function as well
as a ``BaseAgent`` subclass.

``BaseAgent`` adds the helpers the built-in agents share:

- ``call_model``: one system + user exchange with the completion service,
- ``parse_json``: tolerant JSON parsing of model output,
- ``load_user_context``: profile, roadmap items, contacts and documents.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict

from ..completion import ChatMessage, Completion
from ..errors import AgentExecutionError
from ..schemas.domain import AgentResult

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

logger = logging.getLogger(__name__)

AgentCallable = Callable[[Mapping[str, Any], "ExecutionContext"], Awaitable[AgentResult]]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class AgentInput(BaseModel):
    """Base model for agent input. Unknown keys are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


@dataclass(frozen=True)
class AgentDefinition:
    """Registry entry describing one agent."""

    id: str
    name: str
    description: str
    category: str
    execute: AgentCallable
    icon: str = ""
    input_model: Optional[Type[BaseModel]] = None
    required_inputs: Tuple[str, ...] = field(default_factory=tuple)

    def metadata(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "icon": self.icon,
            "requiredInputs": list(self.required_inputs),
        }


@dataclass(frozen=True)
class UserContext:
    profile: Dict[str, Any]
    roadmap_items: List[Dict[str, Any]]
    contacts: List[Dict[str, Any]]
    documents: List[Dict[str, Any]]


class BaseAgent:
    """
    Base class for the built-in agents.

    Subclasses set the class attributes and implement ``run``. ``execute``
    validates the input through ``input_model`` and converts any exception
    raised by ``run`` into ``AgentResult.failure("<error_prefix>: <reason>")``.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    category: ClassVar[str]
    icon: ClassVar[str] = ""
    input_model: ClassVar[Type[AgentInput]] = AgentInput
    required_inputs: ClassVar[Tuple[str, ...]] = ()
    error_prefix: ClassVar[str] = "Agent failed"

    # None falls back to the completion defaults in the execution context.
    temperature: ClassVar[Optional[float]] = None
    max_tokens: ClassVar[Optional[int]] = None

    def definition(self) -> AgentDefinition:
        return AgentDefinition(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            icon=self.icon,
            execute=self.execute,
            input_model=self.input_model,
            required_inputs=self.required_inputs,
        )

    async def execute(self, input: Mapping[str, Any], context: "ExecutionContext") -> AgentResult:
        try:
            params = self.input_model.model_validate(dict(input))
            return await self.run(params, context)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Agent {self.id} failed for user {context.user_id}: {e}")
            return AgentResult.failure(f"{self.error_prefix}: {e}")

    async def run(self, params: Any, context: "ExecutionContext") -> AgentResult:
        raise NotImplementedError

    async def call_model(
        self,
        context: "ExecutionContext",
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_output: bool = True,
    ) -> Completion:
        """
        Run one system + user exchange against the completion service.

        ``temperature`` and ``max_tokens`` resolve from the call arguments, then
        the agent's class attributes, then ``context.settings``.

        Raises:
            AgentExecutionError: When the completion service fails.
        """
        messages: List[ChatMessage] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        if max_tokens is None:
            max_tokens = self.max_tokens if self.max_tokens is not None else context.settings.max_tokens
        if temperature is None:
            temperature = self.temperature if self.temperature is not None else context.settings.temperature
        try:
            return await context.completion.complete(
                messages,
                model=context.settings.model,
                max_tokens=max_tokens,
                temperature=temperature,
                json_output=json_output,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise AgentExecutionError(f"Model call failed: {e}") from e

    @staticmethod
    def parse_json(content: str) -> Dict[str, Any]:
        """
        Parse a JSON object from model output, tolerating markdown code fences.

        Raises:
            AgentExecutionError: When the content is not a JSON object.
        """
        text = _FENCE_RE.sub("", (content or "").strip()).strip()
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise AgentExecutionError(f"Model returned invalid JSON: {e.msg}") from e
        if not isinstance(parsed, dict):
            raise AgentExecutionError("Model returned JSON that is not an object")
        return parsed

    @staticmethod
    async def load_user_context(context: "ExecutionContext") -> UserContext:
        store = context.data_store
        return UserContext(
            profile=await context.profile(),
            roadmap_items=await store.select("roadmap_items"),
            contacts=await store.select("contacts"),
            documents=await store.select("documents"),
        )
