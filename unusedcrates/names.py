"""Names under which a workspace member refers to each of its dependencies."""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from unusedcrates.outcome import DepKind

_NON_LIB_TARGET_KINDS = frozenset({"bin", "example", "test", "bench", "custom-build"})

_AMBIGUITY_HEADER = (
    "Currently `cargo-udeps` cannot distinguish multiple crates with the same `lib` name. "
    "This may cause false negative\n"
)


@dataclass
class DependencyNamesValue:
    """Lookup tables for the dependencies of one kind."""

    by_extern_crate_name: dict[str, str] = field(default_factory=dict)
    by_lib_true_snakecased_name: dict[str, set[str]] = field(default_factory=dict)
    by_package_id: dict[str, str] = field(default_factory=dict)
    non_lib: set[str] = field(default_factory=set)


def _quoted(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass
class DependencyNames:
    """Dependency lookup tables of one workspace member, by kind."""

    normal: DependencyNamesValue = field(default_factory=DependencyNamesValue)
    development: DependencyNamesValue = field(default_factory=DependencyNamesValue)
    build: DependencyNamesValue = field(default_factory=DependencyNamesValue)

    def __getitem__(self, kind: DepKind) -> DependencyNamesValue:
        return {
            DepKind.NORMAL: self.normal,
            DepKind.DEVELOPMENT: self.development,
            DepKind.BUILD: self.build,
        }[kind]

    def has_non_lib(self) -> bool:
        """Whether any declared dependency is a package without a library."""
        return any(self[kind].non_lib for kind in DepKind)

    def _ambiguous(self, kinds: tuple[DepKind, ...]) -> dict[str, str]:
        found: dict[str, str] = {}
        for kind in kinds:
            for lib, deps in self[kind].by_lib_true_snakecased_name.items():
                if len(deps) > 1:
                    found.update((dep, lib) for dep in deps)
        return dict(sorted(found.items()))

    def ambiguity_warning(self, member: str) -> str | None:
        """Describe dependencies that share a library name, or return None."""
        normal_dev = self._ambiguous((DepKind.NORMAL, DepKind.DEVELOPMENT))
        build = self._ambiguous((DepKind.BUILD,))
        if not normal_dev and not build:
            return None

        lines = [_AMBIGUITY_HEADER, f"`{member}`\n"]
        edge, joint = (" ", "└") if not build else ("│", "├")
        sections = [(normal_dev, edge, joint, "(dev-)"), (build, " ", "└", "build-")]
        for ambiguous, section_edge, section_joint, prefix in sections:
            if not ambiguous:
                continue
            lines.append(f"{section_joint}─── {prefix}dependencies\n")
            items = list(ambiguous.items())
            for position, (dep, lib) in enumerate(items, start=1):
                item_joint = "└" if position == len(items) else "├"
                lines.append(
                    f"{section_edge}    {item_joint}─── {_quoted(dep)} → {_quoted(lib)}\n"
                )
        return "".join(lines).rstrip()


def _display_name(package: Mapping[str, Any]) -> str:
    name = f"{package['name']} v{package['version']}"
    source = package.get("source")
    if source is None:
        return f"{name} ({os.path.dirname(package['manifest_path'])})"
    if source.startswith("registry+") and "crates.io-index" in source:
        return name
    return f"{name} ({source})"


def _lib_target(package: Mapping[str, Any]) -> Mapping[str, Any] | None:
    for target in package.get("targets", []):
        if not _NON_LIB_TARGET_KINDS.issuperset(target.get("kind", [])):
            return target
    return None


def _name_in_toml(declared: Mapping[str, Any]) -> str:
    return declared.get("rename") or declared["name"]


def build_dependency_names(
    member_id: str,
    packages: Mapping[str, Mapping[str, Any]],
    resolve_node: Mapping[str, Any],
    warn: Callable[[str], None],
) -> DependencyNames:
    """Build the lookup tables of ``member_id`` from cargo metadata.

    ``packages`` maps package ids to package entries, ``resolve_node`` is the
    member's node of the resolve graph and ``warn`` receives warnings.
    """
    member = packages.get(member_id)
    if member is None:
        raise LookupError(f"could not find `{member_id}`")
    declared_deps = member.get("dependencies", [])
    lib_edges = {edge["pkg"]: edge for edge in resolve_node.get("deps", [])}
    names = DependencyNames()

    for to_id in resolve_node.get("dependencies", []):
        to_pkg = packages.get(to_id)
        if to_pkg is None:
            raise LookupError(f"could not find `{to_id}`")
        edge = lib_edges.get(to_id)
        edge_kinds = (
            {DepKind.from_metadata(k.get("kind")) for k in edge["dep_kinds"]}
            if edge and edge.get("dep_kinds")
            else None
        )
        deps = [
            declared
            for declared in declared_deps
            if declared["name"] == to_pkg["name"]
            and (edge_kinds is None or DepKind.from_metadata(declared.get("kind")) in edge_kinds)
        ]

        lib = _lib_target(to_pkg)
        if lib is None:
            for declared in deps:
                names[DepKind.from_metadata(declared.get("kind"))].non_lib.add(
                    _name_in_toml(declared)
                )
            continue

        lib_name = lib["name"].replace("-", "_")
        for declared in deps:
            table = names[DepKind.from_metadata(declared.get("kind"))]
            name_in_toml = _name_in_toml(declared)
            if edge is not None and edge.get("name"):
                extern_name = edge["name"]
            else:
                extern_name = (declared.get("rename") or lib_name).replace("-", "_")
            table.by_extern_crate_name[extern_name] = name_in_toml
            previous = table.by_package_id.get(to_id)
            table.by_package_id[to_id] = name_in_toml
            if previous is not None:
                warn(f"duplicate package mentioned in toml {to_id}. {previous}")
            table.by_lib_true_snakecased_name.setdefault(lib_name, set()).add(name_in_toml)

    message = names.ambiguity_warning(_display_name(member))
    if message is not None:
        warn(message)
    return names