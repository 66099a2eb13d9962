"""LLM provider abstraction used to write Markdown for a topic.

Supports Google (Gemini, the default), OpenAI and Ollama. Each provider
exposes the same ``chat()`` interface so the content generator can use any
backend without code changes.

Usage::

    from inkpress.llm.providers import get_provider

    # Google Gemini (default)
    llm = get_provider("google", api_key="AIza...", model="gemini-1.5-flash")

    # OpenAI
    llm = get_provider("openai", api_key="sk-...", model="gpt-4o-mini")

    # Ollama (local)
    llm = get_provider("ollama", model="llama3.1")

    text = llm.chat("You are a technical writer.", "Explain asyncio.")
"""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import ConfigurationError, ContentSourceError

logger = logging.getLogger("inkpress.llm.providers")

# ── Defaults ──────────────────────────────────────────────────────────────

DEFAULT_PROVIDER = "google"
DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_TOKENS = 2000
DEFAULT_MAX_RETRIES = 3

# Provider → env-var mapping for API keys
_KEY_ENV_VARS: dict[str, str] = {
    "google": "GOOGLE_API_KEY",
    "gemini": "GOOGLE_API_KEY",
    "openai": "OPENAI_API_KEY",
    "ollama": "",  # no key needed
}

# Provider → default model
_DEFAULT_MODELS: dict[str, str] = {
    "google": "gemini-1.5-flash",
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-4o-mini",
    "ollama": "llama3.1",
}


# ══════════════════════════════════════════════════════════════════════════
# Base class
# ══════════════════════════════════════════════════════════════════════════


class LLMProvider(ABC):
    """Abstract base for all LLM providers."""

    name = ""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        **kwargs: Any,
    ):
        self.api_key = api_key
        self.model = model or default_model_for(self.name)
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_retries = max(1, max_retries)
        self.extra = kwargs

    # ── Public API ────────────────────────────────────────────────────

    def chat(self, system: str, user: str, *, max_tokens: int | None = None) -> str:
        """Send a chat completion with retry.  Returns plain text."""
        budget = max_tokens or self.max_tokens
        last_exc: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                return self._call(system, user, budget)
            except Exception as exc:
                last_exc = exc
                if attempt + 1 == self.max_retries:
                    break
                wait = 2 ** attempt
                logger.warning(
                    "LLM request failed (attempt %d/%d): %s; retrying in %ds",
                    attempt + 1, self.max_retries, exc, wait,
                )
                time.sleep(wait)
        raise ContentSourceError(
            f"LLM request failed after {self.max_retries} attempts",
            cause=last_exc,
        )

    # ── Subclass hooks ────────────────────────────────────────────────

    @abstractmethod
    def _call(self, system: str, user: str, max_tokens: int) -> str:
        """Provider-specific chat completion → plain text."""

    @property
    def provider_name(self) -> str:
        return self.__class__.__name__.replace("Provider", "").lower()


# ══════════════════════════════════════════════════════════════════════════
# Google Gemini
# ══════════════════════════════════════════════════════════════════════════


class GoogleProvider(LLMProvider):
    """Google Generative AI (Gemini) API."""

    name = "google"

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "Google provider requires the 'google-generativeai' package. "
                "Install with: pip install inkpress[llm]"
            )
        key = self.api_key or os.environ.get("GOOGLE_API_KEY", "")
        if not key:
            raise ConfigurationError(
                "No Google API key found. Pass --api-key or set GOOGLE_API_KEY."
            )
        genai.configure(api_key=key)
        self._genai = genai

    def _call(self, system: str, user: str, max_tokens: int) -> str:
        model = self._genai.GenerativeModel(
            model_name=self.model,
            system_instruction=system or None,
            generation_config=self._genai.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=max_tokens,
            ),
        )
        resp = model.generate_content(user)
        return resp.text or ""


# ══════════════════════════════════════════════════════════════════════════
# OpenAI
# ══════════════════════════════════════════════════════════════════════════


class OpenAIProvider(LLMProvider):
    """Standard OpenAI API (also used for generic OpenAI-compatible servers)."""

    name = "openai"

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        try:
            from openai import OpenAI
        except ImportError:
            raise ImportError(
                "OpenAI provider requires the 'openai' package. "
                "Install with: pip install inkpress[llm]"
            )
        key = self.api_key or os.environ.get("OPENAI_API_KEY", "")
        if not key and not self.base_url:
            raise ConfigurationError(
                "No OpenAI API key found. Pass --api-key or set OPENAI_API_KEY."
            )
        ctor_kwargs: dict[str, Any] = {"api_key": key or "not-needed"}
        if self.base_url:
            ctor_kwargs["base_url"] = self.base_url
        self._client = OpenAI(**ctor_kwargs)

    def _call(self, system: str, user: str, max_tokens: int) -> str:
        resp = self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return resp.choices[0].message.content or ""


# ══════════════════════════════════════════════════════════════════════════
# Ollama (local models)
# ══════════════════════════════════════════════════════════════════════════


class OllamaProvider(OpenAIProvider):
    """Ollama local inference through its OpenAI-compatible endpoint.

    By default connects to ``http://localhost:11434/v1``.
    No API key required.
    """

    name = "ollama"

    def __init__(self, **kwargs: Any):
        if not kwargs.get("base_url"):
            kwargs["base_url"] = "http://localhost:11434/v1"
        if not kwargs.get("api_key"):
            kwargs["api_key"] = "ollama"  # Ollama ignores the key
        super().__init__(**kwargs)


# ══════════════════════════════════════════════════════════════════════════
# Factory
# ══════════════════════════════════════════════════════════════════════════

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "google": GoogleProvider,
    "gemini": GoogleProvider,
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
}

SUPPORTED_PROVIDERS = sorted(set(_PROVIDERS.keys()) - {"gemini"})


def get_provider(
    provider: str = DEFAULT_PROVIDER,
    *,
    api_key: str | None = None,
    model: str | None = None,
    base_url: str | None = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    max_retries: int = DEFAULT_MAX_RETRIES,
    **kwargs: Any,
) -> LLMProvider:
    """Create an LLM provider instance.

    Parameters
    ----------
    provider
        Provider name: google, openai, ollama.
    api_key
        API key (falls back to provider-specific env var).
    model
        Model name (falls back to provider-specific default).
    base_url
        Custom API endpoint.
    """
    name = (provider or DEFAULT_PROVIDER).lower().strip()
    cls = _PROVIDERS.get(name)
    if cls is None:
        raise ConfigurationError(
            f"Unknown provider '{provider}'. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    return cls(
        api_key=api_key,
        model=model,
        base_url=base_url,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=max_retries,
        **kwargs,
    )


def resolve_api_key(provider: str, api_key: str | None = None) -> str | None:
    """Resolve API key from argument or environment variable."""
    if api_key:
        return api_key
    env_var = _KEY_ENV_VARS.get(provider.lower(), "")
    if env_var:
        return os.environ.get(env_var)
    return None


def default_model_for(provider: str) -> str:
    """Return the default model name for a given provider."""
    return _DEFAULT_MODELS.get(provider.lower(), _DEFAULT_MODELS[DEFAULT_PROVIDER])
