"""Deciding which declared dependencies were never used by the compiled crates."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from unusedcrates.cmdinfo import CmdInfo
from unusedcrates.ignore import IgnoreList
from unusedcrates.names import DependencyNames
from unusedcrates.outcome import DepKind, Outcome
from unusedcrates.workspace import WorkspaceMetadata

Pair = tuple[str, str]


@dataclass
class TargetSelection:
    """The target filters given on the command line."""

    lib: bool = False
    bins: bool = False
    examples: bool = False
    tests: bool = False
    benches: bool = False
    all_targets: bool = False
    bin: list[str] = field(default_factory=list)
    example: list[str] = field(default_factory=list)
    test: list[str] = field(default_factory=list)
    bench: list[str] = field(default_factory=list)

    def is_default(self) -> bool:
        """Whether no single target or target group was requested."""
        return not (
            self.lib or self.bins or self.examples or self.tests or self.benches
            or self.bin or self.example or self.test or self.bench
        )


def _file_stem(path: os.PathLike[str] | str) -> str:
    name = os.path.basename(os.fspath(path))
    if name.startswith(".") and name.count(".") == 1:
        return name
    stem, dot, _ = name.rpartition(".")
    return stem if dot else name


def used_dependencies(
    cmd_infos: Iterable[CmdInfo],
    all_cmd_infos: Iterable[CmdInfo],
    names: Mapping[str, DependencyNames],
    kind: DepKind,
) -> tuple[set[Pair], set[Pair]]:
    """Return ``(used, referenced)`` pairs of ``(package_id, name_in_toml)`` for ``kind``.

    ``used`` comes from the dep-info files, ``referenced`` from the
    ``--extern`` arguments of the invocations.
    """
    lib_stem_to_pkg = {info.artifact_base_name(): info.package_id for info in all_cmd_infos}
    used: set[Pair] = set()
    referenced: set[Pair] = set()
    for info in cmd_infos:
        member_names = names.get(info.package_id)
        if member_names is None:
            continue
        table = member_names[kind]
        for dep in info.load_depinfo().deps_of_depfile():
            stem = _file_stem(dep)
            lib_name, sep, _ = stem.partition("-")
            if not sep:
                continue
            pkg_id = lib_stem_to_pkg.get(stem)
            if pkg_id is not None:
                dep_name = table.by_package_id.get(pkg_id)
                if dep_name is not None:
                    used.add((info.package_id, dep_name))
            else:
                lib_name = lib_name[3:] if lib_name.startswith("lib") else lib_name
                for dep_name in table.by_lib_true_snakecased_name.get(lib_name, ()):
                    used.add((info.package_id, dep_name))
        for extern in info.extern_crate_names:
            dep_name = table.by_extern_crate_name.get(extern)
            if dep_name is not None:
                referenced.add((info.package_id, dep_name))
    return used, referenced


def _member_label(package: Mapping[str, Any]) -> str:
    label = f"{package['name']} v{package['version']}"
    source = package.get("source")
    if source is None:
        return f"{label} ({os.path.dirname(package['manifest_path'])})"
    return f"{label} ({source})"


def find_unused(
    metadata: WorkspaceMetadata,
    names: Mapping[str, DependencyNames],
    relevant_cmd_infos: Iterable[CmdInfo],
    all_cmd_infos: Iterable[CmdInfo],
    included: Iterable[str],
    info: Callable[[str], None] | None = None,
) -> Outcome:
    """Collect the unused dependencies of the included members, honouring ignore lists."""
    relevant = list(relevant_cmd_infos)
    every = list(all_cmd_infos)
    included_ids = set(included)
    workspace_ignore = IgnoreList.from_metadata(metadata.workspace_metadata, "workspace")

    results = {kind: used_dependencies(relevant, every, names, kind) for kind in DepKind}
    used_normal_dev = results[DepKind.NORMAL][0] | results[DepKind.DEVELOPMENT][0]
    used_build = results[DepKind.BUILD][0]

    outcome = Outcome()
    for kind, used in (
        (DepKind.NORMAL, used_normal_dev),
        (DepKind.DEVELOPMENT, used_normal_dev),
        (DepKind.BUILD, used_build),
    ):
        declared = {(m, dep) for m, n in names.items() for dep in n[kind].non_lib}
        declared |= results[kind][1]
        for pkg_id, dep in sorted(declared):
            if pkg_id not in included_ids or (pkg_id, dep) in used:
                continue
            package = metadata.package(pkg_id)
            ignore = IgnoreList.from_metadata(package.get("metadata"), "package")
            if ignore.contains(kind, dep) or workspace_ignore.contains(kind, dep):
                if info is not None:
                    info(f"Ignoring `{dep}` ({kind.label})")
            else:
                outcome.add_unused(_member_label(package), package["manifest_path"], kind, dep)
    return outcome


def build_note(selection: TargetSelection, names: Iterable[DependencyNames]) -> str:
    """The explanatory note printed after a list of unused dependencies."""
    note = ""
    if not selection.all_targets:
        note += "Note: These dependencies might be used by other targets.\n"
        if selection.is_default():
            note += (
                "      To find dependencies that are not used by any target, "
                "enable `--all-targets`.\n"
            )
    if any(n.has_non_lib() for n in names):
        note += "Note: Some dependencies are non-library packages.\n"
        note += "      `cargo-udeps` regards them as unused.\n"
    note += "Note: They might be false-positive.\n"
    note += (
        "      For example, `cargo-udeps` cannot detect usage of crates that are only "
        "used in doc-tests.\n"
    )
    note += (
        "      To ignore some dependencies, write `package.metadata.cargo-udeps.ignore` "
        "in Cargo.toml.\n"
    )
    return note