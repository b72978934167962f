"""ORA Tool - Oracle SQL and PL/SQL batch runner."""

from ora_tool.__about__ import __version__

__all__ = ["__version__"]
