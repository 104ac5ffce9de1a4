"""Package version; the engine constant is the single source."""

from .engine import secureflow

__version__ = secureflow.ENGINE_VERSION

__all__ = ["__version__"]
