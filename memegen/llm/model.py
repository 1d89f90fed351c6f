"""Model construction for the text-completion layer.

The API key is always handed in by the caller. When it is empty the provider
falls back to its own environment lookup.
"""

from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.openai import OpenAIProvider

SUPPORTED_PROVIDERS = ("openai",)


def get_model(provider: str, model_name: str, api_key: str | None = None) -> Model:
    """Build a pydantic-ai model.

    Raises:
        ValueError: If the provider is not supported
    """
    if provider == "openai":
        if api_key:
            return OpenAIModel(model_name, provider=OpenAIProvider(api_key=api_key))
        return OpenAIModel(model_name)

    raise ValueError(f"Unsupported LLM provider: {provider} (supported: {', '.join(SUPPORTED_PROVIDERS)})")
