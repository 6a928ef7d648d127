"""Library settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

PACKAGED_CAPABILITIES = Path(__file__).parent / "data" / "capabilities.yaml"


@dataclass
class Settings:
    """Library settings, configurable via environment variables.

    Environment variables:
        SSML_FLAVORS_CAPABILITIES: Path to an alternative capability table
            (default: the packaged ``data/capabilities.yaml``)
        SSML_FLAVORS_DEFAULT_FLAVOR: Flavor used by ``serialize_to_string``
            when none is given (default "generic")
    """

    capabilities_path: Path = field(default_factory=lambda: _capabilities_path())
    default_flavor: str = field(
        default_factory=lambda: os.getenv("SSML_FLAVORS_DEFAULT_FLAVOR", "generic").strip().lower()
    )


def _capabilities_path() -> Path:
    raw = os.getenv("SSML_FLAVORS_CAPABILITIES", "")
    if not raw.strip():
        return PACKAGED_CAPABILITIES
    return Path(raw.strip()).expanduser()
