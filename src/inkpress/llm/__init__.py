"""LLM-backed content generation.

Requires ``pip install inkpress[llm]`` for the Google and OpenAI SDKs.
"""

from .providers import (  # noqa: F401
    get_provider,
    SUPPORTED_PROVIDERS,
    DEFAULT_PROVIDER,
    default_model_for,
    resolve_api_key,
)
from .templates import ContentGenerator, build_prompt, list_templates  # noqa: F401
