"""Lead ingestion and cross-system identity matching for the repair queue."""

from .__version__ import __version__

__all__ = ["__version__"]
