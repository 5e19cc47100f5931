"""Reading the ``.d`` dependency files that rustc writes next to its artifacts."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

Rule = tuple[str, list[str]]


def _lines(contents: str) -> Iterator[str]:
    for line in contents.split("\n"):
        yield line[:-1] if line.endswith("\r") else line


def parse_dep_info_text(contents: str) -> list[Rule]:
    """Parse dep-info text into ``(target, prerequisites)`` rules.

    Lines without ``": "`` are skipped. A backslash at the end of a token
    escapes the following space, so the token continues with the next one.
    """
    rules: list[Rule] = []
    for line in _lines(contents):
        pos = line.find(": ")
        if pos < 0:
            continue
        target = line[:pos]
        tokens = iter(line[pos + 2:].split())
        files: list[str] = []
        for token in tokens:
            name = token
            while name.endswith("\\"):
                try:
                    following = next(tokens)
                except StopIteration:
                    raise ValueError("malformed dep-info format, trailing \\") from None
                name = name[:-1] + " " + following
            files.append(name)
        rules.append((target, files))
    return rules


def parse_rustc_dep_info(path: str | os.PathLike[str]) -> list[Rule]:
    """Read and parse the dep-info file at ``path``."""
    return parse_dep_info_text(Path(path).read_text(encoding="utf-8"))


@dataclass
class DepInfo:
    """The rules of one dep-info file, together with that file's own name."""

    rules: list[tuple[Path, list[Path]]] = field(default_factory=list)
    file_name: str = ""

    def deps_of_depfile(self) -> list[Path]:
        """Return the prerequisites of the rule whose target is the dep-info file itself."""
        for target, deps in self.rules:
            if target.name == self.file_name:
                return list(deps)
        return []