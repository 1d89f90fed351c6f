"""Single text-completion capability shared by the mood and caption stages.

Both stages send a system instruction plus one user prompt and read back plain
text. They differ only in their preset (prompt, temperature, output cap), so
one injectable TextCompleter serves both. Tests substitute a pydantic-ai
FunctionModel for deterministic replies.
"""

import asyncio
from dataclasses import dataclass

from loguru import logger
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from memegen.llm.model import get_model


@dataclass(frozen=True)
class CompletionPreset:
    name: str
    system_prompt: str
    temperature: float
    max_tokens: int
    model_name: str = "gpt-4o-mini"


class TextCompleter:
    """Runs one system + user prompt exchange and returns the text reply.

    Args:
        model: Explicit pydantic-ai model. When None, one is built per preset
            from the configured provider on first use.
        provider: LLM provider name passed to get_model
        api_key: Provider API key; empty means the provider reads its own environment
        timeout_seconds: Hard wall-clock limit for one completion
    """

    def __init__(
        self,
        model: Model | None = None,
        *,
        provider: str = "openai",
        api_key: str | None = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._model = model
        self._provider = provider
        self._api_key = api_key or None
        self._timeout_seconds = timeout_seconds
        self._agents: dict[str, Agent[None, str]] = {}

    def _get_agent(self, preset: CompletionPreset) -> Agent[None, str]:
        agent = self._agents.get(preset.name)
        if agent is None:
            model = self._model if self._model is not None else get_model(self._provider, preset.model_name, self._api_key)
            agent = Agent(
                model=model,
                system_prompt=preset.system_prompt,
                output_type=str,
                name=preset.name,
            )
            self._agents[preset.name] = agent
        return agent

    async def complete(self, preset: CompletionPreset, user_prompt: str) -> str:
        """Run one completion.

        Raises:
            TimeoutError: If the call exceeds the configured timeout
            Exception: Any provider/model error, unchanged
        """
        agent = self._get_agent(preset)
        model_settings = ModelSettings(
            temperature=preset.temperature,
            max_tokens=preset.max_tokens,
            timeout=self._timeout_seconds,
        )

        logger.bind(preset=preset.name, temperature=preset.temperature, max_tokens=preset.max_tokens).debug(
            f"LLM Prompt: {preset.name}\nSystem Prompt:\n{preset.system_prompt}\n\nUser Prompt:\n{user_prompt}"
        )

        result = await asyncio.wait_for(
            agent.run(user_prompt, model_settings=model_settings),
            timeout=self._timeout_seconds,
        )
        return result.output
