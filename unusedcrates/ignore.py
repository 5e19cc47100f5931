"""Dependencies a manifest asks the checker to leave alone."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from unusedcrates.outcome import DepKind


def _table(value: Any, key: str, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{context}: `{key}` must be a table")
    return value


def _names(value: Any, key: str, context: str) -> frozenset[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"{context}: `{key}` must be an array of strings")
    if not all(isinstance(name, str) for name in value):
        raise ValueError(f"{context}: `{key}` must be an array of strings")
    return frozenset(value)


@dataclass(frozen=True)
class IgnoreList:
    """Names in ``metadata.cargo-udeps.ignore``, by dependency kind."""

    normal: frozenset[str] = frozenset()
    development: frozenset[str] = frozenset()
    build: frozenset[str] = frozenset()

    @classmethod
    def from_metadata(cls, metadata: Any, where: str) -> IgnoreList:
        """Read the ignore list from a ``package`` or ``workspace`` metadata table.

        ``where`` names the table in error messages. Missing metadata gives
        an empty list; malformed metadata raises ValueError.
        """
        if metadata is None:
            return cls()
        context = f"could not parse `{where}.metadata.cargo-udeps`"
        root = _table(metadata, "metadata", context)
        section = _table(root.get("cargo-udeps", {}), "cargo-udeps", context)
        ignore = _table(section.get("ignore", {}), "ignore", context)
        return cls(**{
            kind.value: _names(ignore.get(kind.value, []), kind.value, context)
            for kind in DepKind
        })

    def contains(self, kind: DepKind, name: str) -> bool:
        return name in {
            DepKind.NORMAL: self.normal,
            DepKind.DEVELOPMENT: self.development,
            DepKind.BUILD: self.build,
        }[kind]