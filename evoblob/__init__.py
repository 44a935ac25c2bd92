"""Package initializer for the blob morphology toolkit."""

from __future__ import annotations

from .config import settings as settings  # Re-export for convenience.

__all__ = ["settings"]
