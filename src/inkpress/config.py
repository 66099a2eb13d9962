"""Environment-driven defaults for the CLI and pipeline.

Command-line flags always win over these values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .llm.providers import DEFAULT_PROVIDER, resolve_api_key

ENV_PREFIX = "INKPRESS_"


@dataclass(frozen=True)
class Settings:
    provider: str = DEFAULT_PROVIDER
    model: Optional[str] = None
    output_dir: Path = Path("./output")
    theme: str = "professional"
    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            provider=env.get(f"{ENV_PREFIX}PROVIDER", DEFAULT_PROVIDER).strip().lower() or DEFAULT_PROVIDER,
            model=env.get(f"{ENV_PREFIX}MODEL") or None,
            output_dir=Path(env.get(f"{ENV_PREFIX}OUTPUT_DIR") or "./output"),
            theme=env.get(f"{ENV_PREFIX}THEME") or "professional",
            google_api_key=env.get("GOOGLE_API_KEY") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
        )

    def api_key_for(self, provider: str, explicit: str | None = None) -> str | None:
        """Explicit key, then the matching settings field, then the environment."""
        if explicit:
            return explicit
        name = provider.lower()
        if name in ("google", "gemini") and self.google_api_key:
            return self.google_api_key
        if name == "openai" and self.openai_api_key:
            return self.openai_api_key
        return resolve_api_key(name)
