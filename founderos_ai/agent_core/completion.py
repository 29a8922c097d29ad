from __future__ import annotations

"""Text-completion service used by agents.

Agents never talk to a model SDK directly. They go through
``TextCompletionService``, which takes an ordered list of chat messages and
returns the completion text together with the number of billed tokens.

``PydanticAICompletionService`` is the production implementation. It builds a
Pydantic AI ``Agent`` per call:

- every ``system`` message is folded into the agent system prompt,
- the remaining messages form the user prompt,
- ``max_tokens`` / ``temperature`` are passed as model settings,
- token usage is read from ``result.usage()``.

Tests inject a stub service or a Pydantic AI ``FunctionModel``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Protocol, Sequence, TypedDict

from pydantic_ai import Agent

from ..core.monitoring import log_llm_call

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = "Respond with a single valid JSON object and nothing else."


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class Completion:
    """Completion text and its billed token count."""

    text: str
    tokens_used: int
    model: Optional[str] = None


@dataclass(frozen=True)
class CompletionDefaults:
    """Model defaults applied when an agent does not override them."""

    model: str = "openai:gpt-4o"
    max_tokens: int = 600
    temperature: float = 0.7


class TextCompletionService(Protocol):
    """Black-box text completion. Failures propagate to the calling agent."""

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_output: bool = False,
    ) -> Completion: ...


def _model_label(model: Any) -> str:
    if isinstance(model, str):
        return model
    return str(getattr(model, "model_name", None) or type(model).__name__)


class PydanticAICompletionService:
    """``TextCompletionService`` backed by Pydantic AI."""

    def __init__(self, *, defaults: Optional[CompletionDefaults] = None, model: Any | None = None) -> None:
        """
        Initialize the service.

        Args:
            defaults: Default model name and sampling settings.
            model: Optional Pydantic AI model instance. When given it is used for
                every call and the per-call ``model`` argument is ignored.
        """
        self._defaults = defaults or CompletionDefaults()
        self._model = model

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_output: bool = False,
    ) -> Completion:
        system_parts = [m["content"] for m in messages if m["role"] == "system" and m["content"]]
        conversation = [m for m in messages if m["role"] != "system"]
        if not conversation:
            raise ValueError("at least one non-system message is required")

        if len(conversation) == 1:
            prompt = conversation[0]["content"]
        else:
            prompt = "\n\n".join(f"{m['role']}: {m['content']}" for m in conversation)

        if json_output:
            system_parts.append(JSON_INSTRUCTION)

        model_ref: Any = self._model if self._model is not None else (model or self._defaults.model)
        settings: Dict[str, Any] = {
            "max_tokens": max_tokens if max_tokens is not None else self._defaults.max_tokens,
            "temperature": temperature if temperature is not None else self._defaults.temperature,
        }

        agent: Agent = Agent(model_ref, output_type=str, system_prompt=tuple(system_parts))
        result = await agent.run(prompt, model_settings=settings)

        usage = result.usage()
        tokens_used = int(getattr(usage, "total_tokens", 0) or 0)
        label = _model_label(model_ref)
        logger.debug(f"Completion from {label} used {tokens_used} tokens")
        log_llm_call(model=label, tokens_used=tokens_used)
        return Completion(text=str(result.output), tokens_used=tokens_used, model=label)
