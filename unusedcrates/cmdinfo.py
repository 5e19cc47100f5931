"""What a rustc invocation tells about the crate it builds."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from unusedcrates.depinfo import DepInfo, parse_rustc_dep_info


@dataclass(frozen=True)
class CmdInfo:
    """The facts taken from the command line of one compiler invocation."""

    package_id: str
    custom_build: bool
    crate_name: str
    crate_type: str
    extra_filename: str
    cap_lints_allow: bool
    out_dir: str
    extern_crate_names: frozenset[str] = field(default_factory=frozenset)

    def artifact_base_name(self) -> str:
        """File stem of the artifact, with ``lib`` prepended for libraries."""
        is_lib = self.crate_type.endswith("lib") or self.crate_type == "proc-macro"
        prefix = "lib" if is_lib else ""
        return prefix + self.crate_name + self.extra_filename

    def depinfo_filename(self) -> str:
        return self.crate_name + self.extra_filename + ".d"

    def depinfo_path(self) -> Path:
        return Path(self.out_dir) / self.depinfo_filename()

    def load_depinfo(self) -> DepInfo:
        """Read the dep-info file this invocation produced."""
        rules = [
            (Path(target), [Path(dep) for dep in deps])
            for target, deps in parse_rustc_dep_info(self.depinfo_path())
        ]
        return DepInfo(rules=rules, file_name=self.depinfo_filename())


def parse_cmd_info(package_id: str, custom_build: bool, args: Iterable[str]) -> CmdInfo:
    """Extract crate facts from the arguments of a rustc invocation."""
    crate_name: str | None = None
    crate_type: str | None = None
    extra_filename: str | None = None
    out_dir: str | None = None
    cap_lints_allow = False
    extern_crate_names: set[str] = set()

    remaining = iter(args)
    for arg in remaining:
        value = next(remaining, None) if arg in _VALUE_FLAGS else None
        if value is None:
            continue
        if arg == "--extern":
            parts = value.split("=")
            if len(parts) > 2:
                raise ValueError(f"invalid format for extern arg: {value!r}")
            extern_crate_names.add(parts[0])
        elif arg == "--crate-name":
            crate_name = value
        elif arg == "--crate-type":
            crate_type = value
        elif arg == "--cap-lints":
            if value == "allow":
                cap_lints_allow = True
        elif arg == "--out-dir":
            out_dir = value
        elif arg == "-C":
            key, sep, rest = value.partition("=")
            if sep and key == "extra-filename":
                extra_filename = rest.split("=", 1)[0]

    if crate_name is None:
        raise ValueError("crate name needed")
    if extra_filename is None:
        raise ValueError("extra-filename needed")
    if out_dir is None:
        raise ValueError("outdir needed")

    return CmdInfo(
        package_id=package_id,
        custom_build=custom_build,
        crate_name=crate_name,
        crate_type=crate_type if crate_type is not None else "bin",
        extra_filename=extra_filename,
        cap_lints_allow=cap_lints_allow,
        out_dir=out_dir,
        extern_crate_names=frozenset(extern_crate_names),
    )


_VALUE_FLAGS = frozenset(
    {"--extern", "--crate-name", "--crate-type", "--cap-lints", "--out-dir", "-C"}
)