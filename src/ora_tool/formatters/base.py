"""Formatter protocol and registry for output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ora_tool.core.models import AggregatedResult


@runtime_checkable
class Formatter(Protocol):
    """Protocol for output formatters.

    Each formatter transforms one AggregatedResult into lines of text.
    Yielding lines rather than one string lets large row sets stream.
    """

    def format(self, result: AggregatedResult) -> Iterator[str]:
        """Transform an AggregatedResult into formatted output lines."""
        ...


class FormatterRegistry:
    """Registry for looking up formatters by name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._formatters[name] = formatter_class

    def get(self, name: str, **kwargs: object) -> Formatter:
        """Return a formatter instance by name.

        Raises KeyError if the format name is not registered.
        """
        if name not in self._formatters:
            available = ", ".join(sorted(self._formatters))
            msg = f"Unknown format {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._formatters[name](**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


def cell_text(value: Any) -> str:
    return "" if value is None else str(value)


# Global registry instance populated by formatter modules.
registry = FormatterRegistry()
