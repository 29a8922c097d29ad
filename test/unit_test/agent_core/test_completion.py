from __future__ import annotations

from typing import Any, Dict, List

import pytest
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel as StubModel

from founderos_ai.agent_core.completion import (
    JSON_INSTRUCTION,
    CompletionDefaults,
    PydanticAICompletionService,
)

pytestmark = pytest.mark.asyncio


def _recording_model(reply: str, seen: Dict[str, Any]) -> FunctionModel:
    def respond(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        request = messages[0]
        assert isinstance(request, ModelRequest)
        seen["system"] = [p.content for p in request.parts if isinstance(p, SystemPromptPart)]
        seen["user"] = [p.content for p in request.parts if isinstance(p, UserPromptPart)]
        seen["settings"] = dict(info.model_settings or {})
        return ModelResponse(parts=[TextPart(reply)])

    return FunctionModel(respond)


async def test_system_messages_become_system_prompt() -> None:
    seen: Dict[str, Any] = {}
    service = PydanticAICompletionService(model=_recording_model('{"ok": true}', seen))

    result = await service.complete(
        [
            {"role": "system", "content": "You are a strategic advisor."},
            {"role": "user", "content": "Plan my quarter."},
        ],
        max_tokens=321,
        temperature=0.2,
        json_output=True,
    )

    assert result.text == '{"ok": true}'
    assert result.tokens_used > 0
    assert seen["system"] == ["You are a strategic advisor.", JSON_INSTRUCTION]
    assert seen["user"] == ["Plan my quarter."]
    assert seen["settings"]["max_tokens"] == 321
    assert seen["settings"]["temperature"] == 0.2


async def test_defaults_apply_when_not_overridden() -> None:
    seen: Dict[str, Any] = {}
    service = PydanticAICompletionService(
        defaults=CompletionDefaults(max_tokens=99, temperature=0.9),
        model=_recording_model("plain", seen),
    )

    await service.complete([{"role": "user", "content": "hi"}])

    assert seen["system"] == []
    assert seen["settings"]["max_tokens"] == 99
    assert seen["settings"]["temperature"] == 0.9


async def test_multi_turn_conversation_is_flattened() -> None:
    seen: Dict[str, Any] = {}
    service = PydanticAICompletionService(model=_recording_model("ok", seen))

    await service.complete(
        [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "answer"},
            {"role": "user", "content": "second"},
        ]
    )

    assert seen["user"] == ["user: first\n\nassistant: answer\n\nuser: second"]


async def test_requires_a_non_system_message() -> None:
    service = PydanticAICompletionService(model=StubModel())

    with pytest.raises(ValueError):
        await service.complete([{"role": "system", "content": "only system"}])


async def test_model_instance_label_is_reported() -> None:
    service = PydanticAICompletionService(model=StubModel(custom_output_text="hello"))

    result = await service.complete([{"role": "user", "content": "hi"}])

    assert result.text == "hello"
    assert result.model
