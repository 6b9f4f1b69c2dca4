"""Generator settings.

Defaults can be overridden from the environment (``SDKGEN_*``) and then by
command-line options.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_SPEC_URL = "https://api.v0.dev/v1/openapi.json"
DEFAULT_OUTPUT_DIR = Path("generated")
DEFAULT_API_KEY_ENV = "V0_API_KEY"


@dataclass(frozen=True)
class GeneratorConfig:
    spec_url: str = DEFAULT_SPEC_URL
    output_dir: Path = DEFAULT_OUTPUT_DIR
    base_url: str | None = None
    api_key_env: str = DEFAULT_API_KEY_ENV
    streaming: bool = True

    @classmethod
    def from_env(cls) -> GeneratorConfig:
        """Read SDKGEN_SPEC_URL, SDKGEN_OUTPUT_DIR, SDKGEN_BASE_URL and SDKGEN_API_KEY_ENV."""
        output_dir = os.environ.get("SDKGEN_OUTPUT_DIR")
        return cls(
            spec_url=os.environ.get("SDKGEN_SPEC_URL") or DEFAULT_SPEC_URL,
            output_dir=Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR,
            base_url=os.environ.get("SDKGEN_BASE_URL") or None,
            api_key_env=os.environ.get("SDKGEN_API_KEY_ENV") or DEFAULT_API_KEY_ENV,
        )

    def override(self, **changes) -> GeneratorConfig:
        """Return a copy with the given fields replaced, ignoring None values."""
        return replace(self, **{key: value for key, value in changes.items() if value is not None})
