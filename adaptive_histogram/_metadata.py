"""Project metadata shared by the runtime and the packaging configuration."""

from __future__ import annotations

from typing import Mapping

PROJECT_METADATA: Mapping[str, object] = {
    "name": "adaptive-histogram",
    "version": "1.0.0",
    "summary": "Adaptive streaming histogram (bounded-memory bucket tree, approximate quantiles)",
    "requires_python": ">=3.9",
}

__version__ = PROJECT_METADATA["version"]  # type: ignore[index]
