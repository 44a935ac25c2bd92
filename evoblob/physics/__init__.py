"""Engine interface used to spawn segments and joints."""

from .engine import BodyEngine, SandboxEngine, setup_gravity

__all__ = ["BodyEngine", "SandboxEngine", "setup_gravity"]
