"""Immutable representation of a URL query string."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from urllib.parse import parse_qsl, urlencode


class QueryState:
    """Ordered, immutable multi-map of query parameters.

    Every operation returns a new instance; the receiver is never modified.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            (str(name), str(value)) for name, value in pairs
        )

    @classmethod
    def parse(cls, query: str | None) -> QueryState:
        """Build a state from a raw query string (a leading '?' is ignored)."""

        if not query:
            return cls()
        return cls(parse_qsl(query.lstrip("?"), keep_blank_values=True))

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        return self._pairs

    def has(self, name: str) -> bool:
        return any(key == name for key, _ in self._pairs)

    def get(self, name: str) -> str | None:
        for key, value in self._pairs:
            if key == name:
                return value
        return None

    def get_all(self, name: str) -> list[str]:
        return [value for key, value in self._pairs if key == name]

    def set(self, name: str, value: str) -> QueryState:
        """Replace the first occurrence of ``name`` and drop the others."""

        pairs: list[tuple[str, str]] = []
        replaced = False
        for key, current in self._pairs:
            if key != name:
                pairs.append((key, current))
            elif not replaced:
                pairs.append((key, value))
                replaced = True
        if not replaced:
            pairs.append((name, value))
        return QueryState(pairs)

    def append(self, name: str, value: str) -> QueryState:
        return QueryState((*self._pairs, (name, value)))

    def delete(self, *names: str) -> QueryState:
        return QueryState(pair for pair in self._pairs if pair[0] not in names)

    def to_string(self) -> str:
        return urlencode(self._pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryState):
            return NotImplemented
        return self._pairs == other._pairs

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"QueryState({self.to_string()!r})"

    def __str__(self) -> str:
        return self.to_string()
