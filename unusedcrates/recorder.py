"""A compiler wrapper that logs each rustc invocation before running it.

Cargo starts the wrapper with the real compiler as its first argument. When
``UNUSEDCRATES_LOG`` names a file, each compilation is appended to it as one
JSON line. ``UNUSEDCRATES_PACKAGES`` may name a JSON file that maps manifest
directories to package ids.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from unusedcrates.cmdinfo import CmdInfo, parse_cmd_info

LOG_ENV = "UNUSEDCRATES_LOG"
PACKAGES_ENV = "UNUSEDCRATES_PACKAGES"


def record_invocation(
    log_path: str | os.PathLike[str],
    package_id: str,
    custom_build: bool,
    args: Iterable[str],
) -> None:
    """Append one compiler invocation to the log."""
    line = json.dumps(
        {"package_id": package_id, "custom_build": custom_build, "args": list(args)}
    )
    with open(log_path, "a", encoding="utf-8") as log:
        log.write(line + "\n")


def read_invocations(log_path: str | os.PathLike[str]) -> list[CmdInfo]:
    """Parse every invocation in the log; a missing log holds none."""
    try:
        text = Path(log_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    records = (json.loads(line) for line in text.splitlines() if line.strip())
    return [
        parse_cmd_info(record["package_id"], record["custom_build"], record["args"])
        for record in records
    ]


def _package_id(env: Mapping[str, str]) -> str:
    manifest_dir = env.get("CARGO_MANIFEST_DIR", "")
    mapping_path = env.get(PACKAGES_ENV)
    if mapping_path:
        with open(mapping_path, encoding="utf-8") as mapping_file:
            mapping = json.load(mapping_file)
        if manifest_dir in mapping:
            return mapping[manifest_dir]
    name = env.get("CARGO_PKG_NAME", "")
    version = env.get("CARGO_PKG_VERSION", "")
    return f"{name} {version} ({manifest_dir})"


def _crate_name(args: Sequence[str]) -> str | None:
    for flag, value in zip(args, args[1:]):
        if flag == "--crate-name":
            return value
    return None


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("usage: recorder <rustc> [args...]", file=sys.stderr)
        return 2
    rustc, *rest = args
    log_path = os.environ.get(LOG_ENV)
    crate_name = _crate_name(rest)
    if log_path and crate_name is not None:
        record_invocation(
            log_path,
            _package_id(os.environ),
            crate_name.startswith("build_script_"),
            rest,
        )
    return subprocess.run([rustc, *rest], check=False).returncode


if __name__ == "__main__":
    raise SystemExit(main())