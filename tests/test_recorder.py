import json
import sys

import pytest

from unusedcrates.recorder import LOG_ENV, PACKAGES_ENV, main, read_invocations, record_invocation


def rustc_args(crate_name, out_dir):
    return ["--crate-name", crate_name, "--crate-type", "lib",
            "-C", "extra-filename=-abc123", "--out-dir", str(out_dir),
            "--extern", "maplit=/deps/libmaplit-1.rmeta"]


@pytest.fixture
def clean_env(monkeypatch):
    for name in (LOG_ENV, PACKAGES_ENV, "CARGO_MANIFEST_DIR", "CARGO_PKG_NAME", "CARGO_PKG_VERSION"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_round_trip(tmp_path):
    log = tmp_path / "log.jsonl"
    record_invocation(log, "pkg-a", False, rustc_args("alpha", tmp_path))
    record_invocation(log, "pkg-b", True, rustc_args("build_script_build", tmp_path))
    infos = read_invocations(log)
    assert [info.package_id for info in infos] == ["pkg-a", "pkg-b"]
    assert [info.custom_build for info in infos] == [False, True]
    assert infos[0].crate_name == "alpha"
    assert infos[0].extern_crate_names == frozenset({"maplit"})
    assert infos[0].artifact_base_name() == "libalpha-abc123"


def test_missing_log_has_no_invocations(tmp_path):
    assert read_invocations(tmp_path / "absent.jsonl") == []


def test_invalid_record_raises(tmp_path):
    log = tmp_path / "log.jsonl"
    record_invocation(log, "pkg", False, ["--crate-name", "alpha"])
    with pytest.raises(ValueError, match="extra-filename needed"):
        read_invocations(log)


def test_main_without_arguments(clean_env):
    assert main([]) == 2


def test_main_passes_exit_code_and_skips_queries(tmp_path, clean_env):
    log = tmp_path / "log.jsonl"
    clean_env.setenv(LOG_ENV, str(log))
    assert main([sys.executable, "-c", "import sys; sys.exit(3)"]) == 3
    assert not log.exists()


def test_main_records_with_package_mapping(tmp_path, clean_env):
    log = tmp_path / "log.jsonl"
    mapping = tmp_path / "packages.json"
    mapping.write_text(json.dumps({str(tmp_path): "pkg-id"}))
    clean_env.setenv(LOG_ENV, str(log))
    clean_env.setenv(PACKAGES_ENV, str(mapping))
    clean_env.setenv("CARGO_MANIFEST_DIR", str(tmp_path))
    assert main([sys.executable, "-c", "pass", *rustc_args("build_script_build", tmp_path)]) == 0
    [info] = read_invocations(log)
    assert info.package_id == "pkg-id"
    assert info.custom_build is True
    assert info.depinfo_path() == tmp_path / "build_script_build-abc123.d"


def test_main_falls_back_to_package_environment(tmp_path, clean_env):
    log = tmp_path / "log.jsonl"
    clean_env.setenv(LOG_ENV, str(log))
    clean_env.setenv("CARGO_MANIFEST_DIR", str(tmp_path))
    clean_env.setenv("CARGO_PKG_NAME", "demo")
    clean_env.setenv("CARGO_PKG_VERSION", "1.2.3")
    assert main([sys.executable, "-c", "pass", *rustc_args("demo", tmp_path)]) == 0
    [info] = read_invocations(log)
    assert info.package_id == f"demo 1.2.3 ({tmp_path})"
    assert info.custom_build is False