import asyncio
import os

import pytest
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from memegen.llm.completion import CompletionPreset, TextCompleter
from memegen.llm.model import get_model

PRESET = CompletionPreset(name="caption", system_prompt="You are a duck.", temperature=0.8, max_tokens=60)


@pytest.mark.asyncio
async def test_complete_returns_text_and_passes_settings():
    seen: dict = {}

    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        request = messages[0]
        assert isinstance(request, ModelRequest)
        seen["system"] = [p.content for p in request.parts if isinstance(p, SystemPromptPart)]
        seen["user"] = [p.content for p in request.parts if isinstance(p, UserPromptPart)]
        seen["settings"] = info.model_settings
        return ModelResponse(parts=[TextPart("Quack attack")])

    completer = TextCompleter(FunctionModel(reply))

    text = await completer.complete(PRESET, "Distance: 5km")

    assert text == "Quack attack"
    assert seen["system"] == ["You are a duck."]
    assert seen["user"] == ["Distance: 5km"]
    assert seen["settings"]["temperature"] == 0.8
    assert seen["settings"]["max_tokens"] == 60


@pytest.mark.asyncio
async def test_presets_keep_separate_settings():
    temperatures: list[float] = []

    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        temperatures.append(info.model_settings["temperature"])
        return ModelResponse(parts=[TextPart("tired")])

    completer = TextCompleter(FunctionModel(reply))
    mood = CompletionPreset(name="mood", system_prompt="Pick a mood.", temperature=0.2, max_tokens=10)

    await completer.complete(mood, "x")
    await completer.complete(PRESET, "x")

    assert temperatures == [0.2, 0.8]


@pytest.mark.asyncio
async def test_slow_completion_times_out():
    async def slow_reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        await asyncio.sleep(1)
        return ModelResponse(parts=[TextPart("too late")])

    completer = TextCompleter(FunctionModel(slow_reply), timeout_seconds=0.05)

    with pytest.raises(TimeoutError):
        await completer.complete(PRESET, "x")


@pytest.mark.asyncio
async def test_model_errors_propagate():
    def broken(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise RuntimeError("provider down")

    with pytest.raises(RuntimeError, match="provider down"):
        await TextCompleter(FunctionModel(broken)).complete(PRESET, "x")


def test_get_model_uses_explicit_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    model = get_model("openai", "gpt-4o-mini", api_key="sk-explicit")

    assert model.model_name == "gpt-4o-mini"
    assert model.client.api_key == "sk-explicit"
    assert "OPENAI_API_KEY" not in os.environ


def test_get_model_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        get_model("quackgpt", "duck-1", api_key="x")


@pytest.mark.asyncio
async def test_completer_passes_api_key_to_model_factory(monkeypatch):
    seen: list[str | None] = []

    def fake_get_model(provider: str, model_name: str, api_key: str | None = None):
        seen.append(api_key)
        return FunctionModel(lambda messages, info: ModelResponse(parts=[TextPart("ok")]))

    monkeypatch.setattr("memegen.llm.completion.get_model", fake_get_model)

    await TextCompleter(api_key="sk-test").complete(PRESET, "x")

    assert seen == ["sk-test"]
