"""The workspace as described by ``cargo metadata``."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


def _cargo_command(cargo: str | Sequence[str] | None) -> list[str]:
    if cargo is None:
        return [os.environ.get("CARGO", "cargo")]
    if isinstance(cargo, str):
        return [cargo]
    return list(cargo)


def load_metadata(
    manifest_path: str | os.PathLike[str] | None = None,
    features: Iterable[str] = (),
    all_features: bool = False,
    no_default_features: bool = False,
    cargo: str | Sequence[str] | None = None,
) -> WorkspaceMetadata:
    """Run ``cargo metadata`` and return the workspace it describes."""
    command = [*_cargo_command(cargo), "metadata", "--format-version", "1"]
    if manifest_path is not None:
        command += ["--manifest-path", os.fspath(manifest_path)]
    feature_list = [f for item in features for f in item.replace(",", " ").split()]
    if feature_list:
        command += ["--features", ",".join(feature_list)]
    if all_features:
        command.append("--all-features")
    if no_default_features:
        command.append("--no-default-features")

    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as error:
        raise RuntimeError(f"could not run `{command[0]}`: {error}") from error
    if result.returncode != 0:
        raise RuntimeError(f"`cargo metadata` failed: {result.stderr.strip()}")
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as error:
        raise ValueError(f"`cargo metadata` printed invalid JSON: {error}") from error
    return WorkspaceMetadata.from_json(data)


def _matches(spec: str, package: Mapping[str, Any]) -> bool:
    if spec == package["id"]:
        return True
    for separator in ("@", ":"):
        name, sep, version = spec.partition(separator)
        if sep:
            return name == package["name"] and (
                package["version"] == version or package["version"].startswith(version + ".")
            )
    return spec == package["name"]


@dataclass
class WorkspaceMetadata:
    """Packages, resolve graph and members of a workspace."""

    packages: dict[str, dict[str, Any]] = field(default_factory=dict)
    resolve: dict[str, dict[str, Any]] = field(default_factory=dict)
    workspace_members: list[str] = field(default_factory=list)
    default_members: list[str] | None = None
    root: str | None = None
    workspace_root: str = ""
    target_directory: str = ""
    workspace_metadata: Any = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> WorkspaceMetadata:
        resolve = data.get("resolve") or {}
        return cls(
            packages={package["id"]: package for package in data.get("packages", [])},
            resolve={node["id"]: node for node in resolve.get("nodes", [])},
            workspace_members=list(data.get("workspace_members", [])),
            default_members=data.get("workspace_default_members"),
            root=resolve.get("root"),
            workspace_root=data.get("workspace_root", ""),
            target_directory=data.get("target_directory", ""),
            workspace_metadata=data.get("metadata"),
        )

    def package(self, package_id: str) -> dict[str, Any]:
        try:
            return self.packages[package_id]
        except KeyError:
            raise LookupError(f"could not find `{package_id}`") from None

    def resolve_node(self, package_id: str) -> dict[str, Any]:
        try:
            return self.resolve[package_id]
        except KeyError:
            raise LookupError(f"`{package_id}` is not in the resolve graph") from None

    def _matching(self, spec: str, candidates: Iterable[str]) -> list[str]:
        return [pkg_id for pkg_id in candidates if _matches(spec, self.package(pkg_id))]

    def selected_members(
        self,
        packages: Sequence[str] = (),
        workspace: bool = False,
        exclude: Sequence[str] = (),
    ) -> set[str]:
        """Ids of the packages chosen by ``--package``, ``--workspace`` and ``--exclude``."""
        if exclude and not workspace:
            raise ValueError("--exclude can only be used together with --workspace")
        if workspace:
            excluded = {pkg_id for spec in exclude for pkg_id in self._matching(spec, self.workspace_members)}
            return set(self.workspace_members) - excluded
        if packages:
            selected: set[str] = set()
            for spec in packages:
                found = self._matching(spec, self.packages)
                if not found:
                    raise ValueError(
                        f"package ID specification `{spec}` did not match any packages"
                    )
                if len(found) > 1:
                    raise ValueError(
                        f"There are multiple `{spec}` packages in your project, "
                        f"and the specification `{spec}` is ambiguous."
                    )
                selected.update(found)
            return selected
        if self.root is not None:
            return {self.root}
        if self.default_members is not None:
            return set(self.default_members)
        return set(self.workspace_members)