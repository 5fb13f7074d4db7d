"""Extension-keyed parser registry."""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Union

from ...shared import normalize_extension

ParserResult = Union[Mapping[str, Any], None]
ParserFunction = Callable[[str], Union[Awaitable[ParserResult], ParserResult]]


class PluginRegistry:
    """
    Maps normalized extensions (".jpg") to parser callables.

    One registry belongs to one server instance. Registering the same
    extension again replaces the previous parser.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, ParserFunction] = {}

    def register(self, extension: str, parser: ParserFunction) -> None:
        if not callable(parser):
            raise TypeError(f"Parser for {extension!r} is not callable")
        self._parsers[normalize_extension(extension)] = parser

    def register_many(self, extensions: Iterable[str], parser: ParserFunction) -> None:
        for ext in extensions:
            self.register(ext, parser)

    def lookup(self, extension: str) -> ParserFunction | None:
        if not extension:
            return None
        return self._parsers.get(extension)

    def extensions(self) -> list[str]:
        return sorted(self._parsers)

    def __contains__(self, extension: object) -> bool:
        return extension in self._parsers

    def __len__(self) -> int:
        return len(self._parsers)
