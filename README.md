# unusedcrates

Find dependencies declared in a `Cargo.toml` that none of the checked targets
actually use.

`unusedcrates` runs `cargo metadata` to learn the workspace, then runs
`cargo check -Z binary-dep-depinfo` with a compiler wrapper that records every
compiler invocation. It reads the dep-info (`.d`) files written for the
workspace crates and compares the crates that were really linked against those
declared under `[dependencies]`, `[dev-dependencies]` and
`[build-dependencies]`.

## Requirements

- Python 3.10 or later
- `cargo` on `PATH` (or named by the `CARGO` environment variable), using a
  **nightly** toolchain: `-Z binary-dep-depinfo` is an unstable flag

## Installation

```console
pip install unusedcrates
```

## Usage

Run it from the directory holding your `Cargo.toml`:

```console
unusedcrates --all-targets
```

A leading `udeps` argument is accepted and skipped, so `unusedcrates udeps
--all-targets` works as well.

Without `--all-targets` only the default targets are checked, so a dependency
used only by tests, examples or benches is reported as unused.

Sample output:

```text
unused dependencies:
`normal_dev_build v0.0.1 (/path/to/project)`
├─── dependencies
│    └─── "if_chain"
├─── dev-dependencies
│    └─── "maplit"
└─── build-dependencies
     └─── "matches"
Note: They might be false-positive.
      For example, `cargo-udeps` cannot detect usage of crates that are only used in doc-tests.
      To ignore some dependencies, write `package.metadata.cargo-udeps.ignore` in Cargo.toml.
```

When nothing is unused it prints `All deps seem to have been used.`

Exit status:

| Status | Meaning |
| --- | --- |
| `0` | every dependency is used |
| `1` | at least one unused dependency was reported |
| `101` | an error occurred (for example the workspace did not compile) |

Before the check, each workspace member is cleaned with `cargo clean -p` so
that its compilation is recorded.

### Options

| Option | Meaning |
| --- | --- |
| `-p`, `--package SPEC` | Check only the given package(s) |
| `--workspace`, `--all` | Check all packages in the workspace |
| `--exclude SPEC` | Leave packages out (only together with `--workspace`) |
| `--lib`, `--bins`, `--examples`, `--tests`, `--benches` | Select target groups |
| `--bin`, `--example`, `--test`, `--bench NAME` | Select single targets |
| `--all-targets` | Check all targets |
| `--features FEATURES` | Features to activate |
| `--all-features` | Activate all features |
| `--no-default-features` | Do not activate the `default` feature |
| `--manifest-path PATH` | Path to `Cargo.toml` |
| `--target TRIPLE`, `--target-dir DIRECTORY` | Passed on to `cargo check` |
| `--profile test` | Check unit tests (`#[cfg(test)]` code); other profiles are rejected |
| `--output human\|json` | Output format (default `human`) |
| `--backend depinfo` | Analysis backend (only `depinfo`) |
| `-q`, `--quiet` | Suppress `info:` messages |
| `-v`, `--verbose` | More verbose `cargo` output |
| `-V`, `--version` | Print the version |

`--jobs`, `--release`, `--message-format`, `--color`, `--frozen`, `--locked`,
`--offline` and `--keep-going` are passed on to `cargo check`. Run
`unusedcrates --help` for the full list.

### JSON output

```console
unusedcrates --all-targets --output json
```

prints one JSON object on a single line with `success`, `unused_deps` and
`note`. `unused_deps` is keyed by the member's display name (for example
`"normal_dev_build v0.0.1 (/path/to/project)"`); each entry holds
`manifest_path` and sorted lists `normal`, `development` and `build`.

## Ignoring dependencies

Some dependencies cannot be detected as used, for instance crates used only in
doc-tests. List them in the package's `Cargo.toml`:

```toml
[package.metadata.cargo-udeps.ignore]
normal = ["if_chain"]
development = []
build = []
```

or for the whole workspace:

```toml
[workspace.metadata.cargo-udeps.ignore]
normal = ["if_chain"]
```

Ignored entries are reported on stderr as ``info: Ignoring `if_chain` (Normal)``
(unless `--quiet` is given) and do not affect the exit status. A malformed
ignore table is an error.

## The recorder

`unusedcrates-recorder` (also `python -m unusedcrates.recorder`) is the
compiler wrapper used during a check. It is started with the real compiler as
its first argument, appends the invocation as a JSON line to the file named by
`UNUSEDCRATES_LOG`, and then runs the compiler. It is not meant to be run by
hand.

## Using it as a library

- `unusedcrates.depinfo.parse_dep_info_text` / `parse_rustc_dep_info` parse
  dep-info files.
- `unusedcrates.cmdinfo.parse_cmd_info` extracts crate facts from compiler
  arguments.
- `unusedcrates.workspace.load_metadata` runs `cargo metadata` and returns a
  `WorkspaceMetadata`.
- `unusedcrates.analysis.find_unused` returns an `Outcome`, which
  `Outcome.render_human`, `Outcome.to_json` and `Outcome.write` print.

## Limitations

- Only the `depinfo` backend exists; usage is inferred from linked artifacts,
  not from the source code.
- Dependencies without a library target are always reported as unused.
- Two dependencies that share a library name cannot be told apart; a warning
  is printed and results may contain false negatives.
- Crates used only in doc-tests are reported as unused.