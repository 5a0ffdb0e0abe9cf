"""Inbound sampling/elicitation request broker."""

from inspectorbroker.version import __version__

__all__ = ["__version__"]
