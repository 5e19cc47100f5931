"""Command line: compile the workspace and report unused dependencies."""

from __future__ import annotations

import argparse
import json
import os
import stat
import subprocess
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from unusedcrates.analysis import TargetSelection, build_note, find_unused
from unusedcrates.names import build_dependency_names
from unusedcrates.outcome import OutputKind
from unusedcrates.recorder import LOG_ENV, PACKAGES_ENV, read_invocations
from unusedcrates.workspace import WorkspaceMetadata, load_metadata

VERSION = "0.1.56"

_AFTER_HELP = """\
If the `--package` argument is given, then SPEC is a package ID specification
which indicates which package should be built. If it is not given, then the
current package is built.

All packages in the workspace are checked if the `--workspace` flag is supplied. The
`--workspace` flag is automatically assumed for a virtual manifest.
Note that `--exclude` has to be specified in conjunction with the `--workspace` flag.

The `--profile test` flag can be used to check unit tests with the
`#[cfg(test)]` attribute."""


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cargo udeps",
        description="Find unused dependencies in Cargo.toml",
        epilog=_AFTER_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-V", "--version", action="version", version=f"cargo-udeps {VERSION}")
    p.add_argument("-q", "--quiet", action="store_true", help="No output printed to stdout")
    p.add_argument("-p", "--package", action="append", default=[], metavar="SPEC")
    p.add_argument("--all", action="store_true", help="Alias for --workspace (deprecated)")
    p.add_argument("--workspace", action="store_true")
    p.add_argument("--exclude", action="append", default=[], metavar="SPEC")
    p.add_argument("-j", "--jobs", metavar="N")
    p.add_argument("--lib", action="store_true")
    p.add_argument("--bin", action="append", default=[], metavar="NAME")
    p.add_argument("--bins", action="store_true")
    p.add_argument("--example", action="append", default=[], metavar="NAME")
    p.add_argument("--examples", action="store_true")
    p.add_argument("--test", action="append", default=[], metavar="NAME")
    p.add_argument("--tests", action="store_true")
    p.add_argument("--bench", action="append", default=[], metavar="NAME")
    p.add_argument("--benches", action="store_true")
    p.add_argument("--all-targets", action="store_true")
    p.add_argument("--release", action="store_true")
    p.add_argument("--profile", metavar="PROFILE-NAME")
    p.add_argument("--features", action="append", default=[], metavar="FEATURES")
    p.add_argument("--all-features", action="store_true")
    p.add_argument("--no-default-features", action="store_true")
    p.add_argument("--target", metavar="TRIPLE")
    p.add_argument("--target-dir", metavar="DIRECTORY")
    p.add_argument("--manifest-path", metavar="PATH")
    p.add_argument(
        "--message-format", default="human", type=str.lower,
        choices=["human", "json", "short"], metavar="FMT",
    )
    p.add_argument("-v", "--verbose", action="count", default=0)
    p.add_argument("--color", choices=["auto", "always", "never"], metavar="WHEN")
    p.add_argument("--frozen", action="store_true")
    p.add_argument("--locked", action="store_true")
    p.add_argument("--offline", action="store_true")
    p.add_argument("--output", default="human", choices=["human", "json"], metavar="OUTPUT")
    p.add_argument("--backend", default="depinfo", choices=["depinfo"], metavar="BACKEND")
    p.add_argument("--keep-going", action="store_true")
    return p


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse options; a leading ``udeps`` (as passed by cargo) is skipped."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == "udeps":
        args = args[1:]
    return _parser().parse_args(args)


def _check_command(opts: argparse.Namespace) -> list[str]:
    cmd = [os.environ.get("CARGO", "cargo"), "check", "-Z", "binary-dep-depinfo"]
    flags = {
        "quiet": "--quiet", "workspace": "--workspace", "all": "--workspace",
        "lib": "--lib", "bins": "--bins", "examples": "--examples", "tests": "--tests",
        "benches": "--benches", "all_targets": "--all-targets", "release": "--release",
        "all_features": "--all-features", "no_default_features": "--no-default-features",
        "frozen": "--frozen", "locked": "--locked", "offline": "--offline",
        "keep_going": "--keep-going",
    }
    for attr, flag in flags.items():
        if getattr(opts, attr) and flag not in cmd:
            cmd.append(flag)
    for attr, flag in (("package", "-p"), ("exclude", "--exclude"), ("bin", "--bin"),
                       ("example", "--example"), ("test", "--test"), ("bench", "--bench")):
        for value in getattr(opts, attr):
            cmd += [flag, value]
    if opts.features:
        cmd += ["--features", " ".join(opts.features)]
    for attr, flag in (("jobs", "--jobs"), ("profile", "--profile"), ("target", "--target"),
                       ("target_dir", "--target-dir"), ("manifest_path", "--manifest-path"),
                       ("color", "--color")):
        value = getattr(opts, attr)
        if value is not None:
            cmd += [flag, value]
    cmd += ["--message-format", opts.message_format]
    cmd += ["-v"] * min(opts.verbose, 2)
    return cmd


def _write_wrapper(directory: Path) -> Path:
    if os.name == "nt":
        wrapper = directory / "recorder.bat"
        wrapper.write_text(f'@"{sys.executable}" -m unusedcrates.recorder %*\r\n', encoding="utf-8")
    else:
        wrapper = directory / "recorder.sh"
        wrapper.write_text(
            f"#!/bin/sh\nexec '{sys.executable}' -m unusedcrates.recorder \"$@\"\n",
            encoding="utf-8",
        )
        wrapper.chmod(wrapper.stat().st_mode | stat.S_IEXEC)
    return wrapper


def _compile(opts: argparse.Namespace, metadata: WorkspaceMetadata, directory: Path) -> Path:
    log_path = directory / "invocations.jsonl"
    mapping_path = directory / "packages.json"
    mapping = {
        os.path.dirname(pkg["manifest_path"]): pkg_id
        for pkg_id, pkg in metadata.packages.items()
    }
    mapping_path.write_text(json.dumps(mapping), encoding="utf-8")
    env = dict(os.environ)
    env.update({
        "RUSTC_WRAPPER": str(_write_wrapper(directory)),
        LOG_ENV: str(log_path),
        PACKAGES_ENV: str(mapping_path),
    })
    cargo = os.environ.get("CARGO", "cargo")
    # Members are always rebuilt so that their invocations get recorded.
    for member in metadata.workspace_members:
        clean = [cargo, "clean", "-p", metadata.package(member)["name"]]
        if opts.manifest_path is not None:
            clean += ["--manifest-path", opts.manifest_path]
        if opts.target_dir is not None:
            clean += ["--target-dir", opts.target_dir]
        subprocess.run(clean, env=env, check=False, capture_output=True)
    if subprocess.run(_check_command(opts), env=env, check=False).returncode != 0:
        raise RuntimeError("could not compile the workspace")
    return log_path


def run(argv: Sequence[str] | None = None, stdout: TextIO | None = None) -> int:
    """Run the check; return 0 when all dependencies are used and 1 otherwise."""
    opts = parse_args(argv)
    out = sys.stdout if stdout is None else stdout

    def warn(message: str) -> None:
        print(f"warning: {message}", file=sys.stderr)

    def info(message: str) -> None:
        if not opts.quiet:
            print(f"info: {message}", file=sys.stderr)

    if opts.verbose > 0:
        warn('currently verbose command information ("Running `..`") are not correct.')
    if opts.profile not in (None, "test"):
        raise ValueError(
            f"unknown profile: `{opts.profile}`, only `test` is currently supported"
        )

    metadata = load_metadata(
        opts.manifest_path, opts.features, opts.all_features, opts.no_default_features
    )
    names = {
        member: build_dependency_names(
            member, metadata.packages, metadata.resolve_node(member), warn
        )
        for member in metadata.workspace_members
    }

    with tempfile.TemporaryDirectory(prefix="unusedcrates") as tmp:
        all_infos = read_invocations(_compile(opts, metadata, Path(tmp)))

    members = set(metadata.workspace_members)
    relevant = []
    for cmd in all_infos:
        is_path = metadata.packages.get(cmd.package_id, {}).get("source") is None
        if (not cmd.cap_lints_allow) != is_path:
            warn(f"(!cap_lints_allow)={not cmd.cap_lints_allow} differs from "
                 f"is_path={is_path} for id={cmd.package_id}")
        if cmd.package_id in members:
            relevant.append(cmd)

    included = metadata.selected_members(opts.package, opts.workspace or opts.all, opts.exclude)
    for cmd in relevant:
        info(f"Loading depinfo from {str(cmd.depinfo_path())!r}")
    outcome = find_unused(metadata, names, relevant, all_infos, included, info)
    if not outcome.success:
        selection = TargetSelection(
            lib=opts.lib, bins=opts.bins, examples=opts.examples, tests=opts.tests,
            benches=opts.benches, all_targets=opts.all_targets, bin=opts.bin,
            example=opts.example, test=opts.test, bench=opts.bench,
        )
        outcome.note = build_note(selection, names.values())
    outcome.write(OutputKind(opts.output), out)
    return 0 if outcome.success else 1


def main(argv: Sequence[str] | None = None) -> int:
    try:
        return run(argv)
    except (ValueError, RuntimeError, LookupError, OSError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 101


if __name__ == "__main__":
    raise SystemExit(main())