from __future__ import annotations

import json
from pathlib import Path

import pytest

from pathpolicy.cli import create_parser, main
from pathpolicy.table import OVERRIDES_ENV_KEY


def _run(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, dict, str]:
    code = main(argv)
    captured = capsys.readouterr()
    payload = json.loads(captured.out) if captured.out.strip() else {}
    return code, payload, captured.err


def test_parser_defaults() -> None:
    namespace = create_parser().parse_args(["show", "bash"])
    assert namespace.names == ["bash"]
    assert namespace.host_os is None
    assert namespace.overrides is None
    assert namespace.log_level == "WARN"


def test_parser_rejects_unknown_kind() -> None:
    with pytest.raises(SystemExit):
        create_parser().parse_args(["list", "--kind", "permitted"])


def test_show_reports_records(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload, _ = _run(capsys, ["show", "clang", "cat", "unknown-tool-xyz", "--host-os", "linux"])

    assert code == 0
    assert payload["host_os"] == "linux"
    assert payload["tools"]["clang"] == {
        "kind": "forbidden",
        "symlink": False,
        "log": True,
        "error": True,
        "linux_only_prebuilt": False,
    }
    assert payload["tools"]["cat"]["kind"] == "linux_only_prebuilt"
    assert payload["tools"]["unknown-tool-xyz"]["kind"] == "missing"


def test_show_on_darwin(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload, _ = _run(capsys, ["show", "cat", "xcrun", "--host-os", "darwin"])

    assert code == 0
    assert payload["tools"]["cat"]["kind"] == "allowed"
    assert payload["tools"]["xcrun"]["kind"] == "allowed"


def test_list_filters_by_kind(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload, _ = _run(capsys, ["list", "--kind", "forbidden", "--host-os", "linux"])

    assert code == 0
    assert payload["counts"]["forbidden"] == 11
    assert len(payload["tools"]) == 11
    assert set(payload["tools"].values()) == {"forbidden"}


def test_list_applies_override_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "policy.yaml"
    path.write_text("version: 1\ntools:\n  clang: allowed\n", encoding="utf-8")

    code, payload, _ = _run(
        capsys, ["list", "--host-os", "linux", "--overrides", str(path)]
    )

    assert code == 0
    assert payload["tools"]["clang"] == "allowed"
    assert payload["counts"]["forbidden"] == 10


def test_list_reads_override_file_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"version": 1, "tools": {"my-tool": "log"}}), encoding="utf-8")
    monkeypatch.setenv(OVERRIDES_ENV_KEY, str(path))

    code, payload, _ = _run(capsys, ["list", "--kind", "log", "--host-os", "linux"])

    assert code == 0
    assert payload["tools"] == {"my-tool": "log"}


def test_validate_reports_entry_count(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "policy.yaml"
    path.write_text("version: 1\ntools:\n  clang: allowed\n  gcc: allowed\n", encoding="utf-8")

    code, payload, _ = _run(capsys, ["validate", str(path)])

    assert code == 0
    assert payload == {"path": str(path), "entries": 2}


def test_invalid_override_file_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "policy.yaml"
    path.write_text("version: 3\ntools: {}\n", encoding="utf-8")

    code, payload, err = _run(capsys, ["validate", str(path)])

    assert code == 1
    assert payload == {}
    assert "failed validation" in err

    code, _, err = _run(capsys, ["show", "bash", "--overrides", str(tmp_path / "absent.yaml")])
    assert code == 1
    assert "not found" in err


def test_validate_reports_non_utf8_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "policy.yaml"
    path.write_bytes(b"\xff\xfe\x00bad")

    code, payload, err = _run(capsys, ["validate", str(path)])

    assert code == 1
    assert payload == {}
    assert str(path) in err


def test_host_os_flag_is_normalised(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload, _ = _run(capsys, ["show", "cat", "--host-os", " Darwin "])

    assert code == 0
    assert payload["host_os"] == "darwin"
    assert payload["tools"]["cat"]["kind"] == "allowed"
