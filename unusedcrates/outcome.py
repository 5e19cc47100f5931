"""The result of a check and the ways it is printed."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TextIO


class DepKind(Enum):
    """The sections of a manifest a dependency can be declared in."""

    NORMAL = "normal"
    DEVELOPMENT = "development"
    BUILD = "build"

    @property
    def prefix(self) -> str:
        """Prefix of the section heading, e.g. ``dev-`` in ``dev-dependencies``."""
        return {DepKind.NORMAL: "", DepKind.DEVELOPMENT: "dev-", DepKind.BUILD: "build-"}[self]

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_metadata(cls, kind: str | None) -> DepKind:
        """Map the ``kind`` of a dependency in cargo metadata to a DepKind."""
        mapping = {None: cls.NORMAL, "normal": cls.NORMAL, "dev": cls.DEVELOPMENT, "build": cls.BUILD}
        try:
            return mapping[kind]
        except KeyError:
            raise ValueError(f"unknown dependency kind: {kind!r}") from None


class OutputKind(Enum):
    HUMAN = "human"
    JSON = "json"


@dataclass
class UnusedDeps:
    """Unused dependencies of one workspace member, by kind."""

    manifest_path: str
    normal: set[str] = field(default_factory=set)
    development: set[str] = field(default_factory=set)
    build: set[str] = field(default_factory=set)

    def for_kind(self, kind: DepKind) -> set[str]:
        return {
            DepKind.NORMAL: self.normal,
            DepKind.DEVELOPMENT: self.development,
            DepKind.BUILD: self.build,
        }[kind]

    def is_empty(self) -> bool:
        return not (self.normal or self.development or self.build)


def _quoted(name: str) -> str:
    escaped = (
        name.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _edge_and_joint(last: bool) -> tuple[str, str]:
    return (" ", "└") if last else ("│", "├")


@dataclass
class Outcome:
    """Unused dependencies keyed by the display name of the member declaring them."""

    unused_deps: dict[str, UnusedDeps] = field(default_factory=dict)
    note: str | None = None

    @property
    def success(self) -> bool:
        return all(deps.is_empty() for deps in self.unused_deps.values())

    def add_unused(self, member: str, manifest_path: str, kind: DepKind, name: str) -> None:
        entry = self.unused_deps.setdefault(member, UnusedDeps(manifest_path))
        entry.for_kind(kind).add(name)

    def render_human(self) -> str:
        if self.success:
            return "All deps seem to have been used.\n"
        out = ["unused dependencies:\n"]
        for member in sorted(self.unused_deps):
            deps = self.unused_deps[member]
            out.append(f"`{member}`\n")
            sections = [
                (deps.normal, _edge_and_joint(not deps.development and not deps.build), DepKind.NORMAL),
                (deps.development, _edge_and_joint(not deps.build), DepKind.DEVELOPMENT),
                (deps.build, (" ", "└"), DepKind.BUILD),
            ]
            for names, (edge, joint), kind in sections:
                if not names:
                    continue
                out.append(f"{joint}─── {kind.prefix}dependencies\n")
                ordered = sorted(names)
                out.extend(f"{edge}    ├─── {_quoted(name)}\n" for name in ordered[:-1])
                out.append(f"{edge}    └─── {_quoted(ordered[-1])}\n")
        if self.note is not None:
            out.append(self.note)
        return "".join(out)

    def to_json(self) -> str:
        document = {
            "success": self.success,
            "unused_deps": {
                member: {
                    "manifest_path": deps.manifest_path,
                    "normal": sorted(deps.normal),
                    "development": sorted(deps.development),
                    "build": sorted(deps.build),
                }
                for member, deps in sorted(self.unused_deps.items())
            },
            "note": self.note,
        }
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)

    def write(self, output: OutputKind, stream: TextIO) -> None:
        if output is OutputKind.HUMAN:
            stream.write(self.render_human())
        else:
            stream.write(self.to_json() + "\n")
        stream.flush()