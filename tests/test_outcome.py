import io
import json

import pytest

from unusedcrates.outcome import DepKind, Outcome, OutputKind, UnusedDeps

MASK = "\u2588" * 10
INDENT = " " * 6
TEE = "\u251c\u2500\u2500\u2500"
ELBOW = "\u2514\u2500\u2500\u2500"
BAR = "\u2502"
HEADER = "unused dependencies:"
ALL_USED = "All deps seem to have been used.\n"


def _text(*lines):
    return "".join(f"{line}\n" for line in lines)


FALSE_POSITIVE = _text(
    "Note: They might be false-positive.",
    f"{INDENT}For example, `cargo-udeps` cannot detect usage of crates"
    " that are only used in doc-tests.",
    f"{INDENT}To ignore some dependencies, write"
    " `package.metadata.cargo-udeps.ignore` in Cargo.toml.",
)
OTHER_TARGETS = _text(
    "Note: These dependencies might be used by other targets.",
    f"{INDENT}To find dependencies that are not used by any target,"
    " enable `--all-targets`.",
)
NON_LIB = _text(
    "Note: Some dependencies are non-library packages.",
    f"{INDENT}`cargo-udeps` regards them as unused.",
)


def _member(name, version):
    return f"{name} v{version} ({MASK})"


def _section(joint, edge, prefix, names):
    rows = [f"{joint} {prefix}dependencies"]
    for position, name in enumerate(names):
        mark = ELBOW if position == len(names) - 1 else TEE
        rows.append(f'{edge}    {mark} "{name}"')
    return rows


def _outcome(member, note, normal=(), development=(), build=()):
    deps = UnusedDeps(
        manifest_path="/w/Cargo.toml",
        normal=set(normal),
        development=set(development),
        build=set(build),
    )
    return Outcome(unused_deps={member: deps}, note=note)


@pytest.mark.parametrize(
    "package, given",
    [
        ("ignore-if-chain", ["matches", "maplit"]),
        ("ignore-workspace", ["maplit", "matches"]),
    ],
)
def test_ignored_dependency_left_out(package, given):
    member = _member(package, "0.0.0")
    outcome = _outcome(member, FALSE_POSITIVE, normal=given)
    assert not outcome.success
    expected = (
        _text(
            HEADER,
            f"`{member}`",
            *_section(ELBOW, " ", "", ["maplit", "matches"]),
        )
        + FALSE_POSITIVE
    )
    assert outcome.render_human() == expected


def test_all_used():
    outcome = Outcome(note=None)
    assert outcome.success
    assert outcome.render_human() == ALL_USED


def test_empty_sets_count_as_success():
    outcome = _outcome(_member("ignore-all", "0.0.0"), None)
    assert outcome.success
    assert outcome.render_human() == ALL_USED


def test_normal_dev_build_without_all_targets():
    member = _member("normal_dev_build", "0.0.1")
    outcome = _outcome(
        member,
        OTHER_TARGETS + FALSE_POSITIVE,
        normal=["if_chain"],
        build=["matches"],
    )
    expected = (
        _text(
            HEADER,
            f"`{member}`",
            *_section(TEE, BAR, "", ["if_chain"]),
            *_section(ELBOW, " ", "build-", ["matches"]),
        )
        + OTHER_TARGETS
        + FALSE_POSITIVE
    )
    assert outcome.render_human() == expected


def test_normal_dev_build_with_all_targets():
    member = _member("normal_dev_build", "0.0.1")
    outcome = _outcome(
        member,
        FALSE_POSITIVE,
        normal=["if_chain"],
        development=["maplit"],
        build=["matches"],
    )
    expected = (
        _text(
            HEADER,
            f"`{member}`",
            *_section(TEE, BAR, "", ["if_chain"]),
            *_section(TEE, BAR, "dev-", ["maplit"]),
            *_section(ELBOW, " ", "build-", ["matches"]),
        )
        + FALSE_POSITIVE
    )
    assert outcome.render_human() == expected


@pytest.mark.parametrize(
    "note",
    [OTHER_TARGETS + FALSE_POSITIVE, FALSE_POSITIVE],
)
def test_unused_byteorder(note):
    member = _member("unused_byteorder", "0.0.1")
    outcome = _outcome(member, note, normal=["byteorder"])
    expected = (
        _text(HEADER, f"`{member}`", *_section(ELBOW, " ", "", ["byteorder"]))
        + note
    )
    assert outcome.render_human() == expected


@pytest.mark.parametrize(
    "note",
    [OTHER_TARGETS + NON_LIB + FALSE_POSITIVE, NON_LIB + FALSE_POSITIVE],
)
def test_non_lib_build_dep(note):
    member = _member("non_lib_build_dep", "0.0.0")
    outcome = _outcome(member, note, build=["diffr"])
    expected = (
        _text(HEADER, f"`{member}`", *_section(ELBOW, " ", "build-", ["diffr"]))
        + note
    )
    assert outcome.render_human() == expected


def test_tree_glyphs_are_pinned():
    member = _member("glyphs", "1.0.0")
    outcome = _outcome(member, "", normal=["a"], build=["b"])
    rendered = outcome.render_human().splitlines()
    assert rendered[2] == "\u251c\u2500\u2500\u2500 dependencies"
    assert rendered[3] == '\u2502    \u2514\u2500\u2500\u2500 "a"'
    assert rendered[4] == "\u2514\u2500\u2500\u2500 build-dependencies"
    assert rendered[5] == '     \u2514\u2500\u2500\u2500 "b"'


def test_add_unused_creates_and_extends_entries():
    outcome = Outcome()
    outcome.add_unused("m v1", "/m/Cargo.toml", DepKind.NORMAL, "a")
    outcome.add_unused("m v1", "/other", DepKind.BUILD, "b")
    entry = outcome.unused_deps["m v1"]
    assert entry.manifest_path == "/m/Cargo.toml"
    assert entry.for_kind(DepKind.NORMAL) == {"a"}
    assert entry.for_kind(DepKind.BUILD) == {"b"}
    assert entry.for_kind(DepKind.DEVELOPMENT) == set()


def test_json_structure():
    outcome = _outcome("m v1", "n\n", normal=["b", "a"], development=["c"])
    document = json.loads(outcome.to_json())
    assert document == {
        "success": False,
        "unused_deps": {
            "m v1": {
                "manifest_path": "/w/Cargo.toml",
                "normal": ["a", "b"],
                "development": ["c"],
                "build": [],
            }
        },
        "note": "n\n",
    }


def test_json_of_success():
    assert Outcome().to_json() == '{"success":true,"unused_deps":{},"note":null}'


def test_write_json_adds_newline():
    stream = io.StringIO()
    Outcome().write(OutputKind.JSON, stream)
    assert stream.getvalue() == Outcome().to_json() + "\n"


def test_write_human():
    stream = io.StringIO()
    outcome = _outcome("m v1", FALSE_POSITIVE, normal=["x"])
    outcome.write(OutputKind.HUMAN, stream)
    assert stream.getvalue() == outcome.render_human()


def test_dep_kind_from_metadata():
    assert DepKind.from_metadata(None) is DepKind.NORMAL
    assert DepKind.from_metadata("dev") is DepKind.DEVELOPMENT
    assert DepKind.from_metadata("build") is DepKind.BUILD
    with pytest.raises(ValueError):
        DepKind.from_metadata("weird")


def test_output_kind_from_value():
    assert OutputKind("json") is OutputKind.JSON
    with pytest.raises(ValueError):
        OutputKind("xml")