from __future__ import annotations

from pathlib import Path

import pytest

from utils.file_utils import FileMissingError, FileUtils, UnsupportedFileFormatError


def test_resolve_path_relative_to_base_dir(tmp_path: Path) -> None:
    resolved: Path = FileUtils.resolve_path("conf/providers.json", base_dir=tmp_path)

    assert resolved == tmp_path.resolve() / "conf" / "providers.json"


def test_resolve_path_relative_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert FileUtils.resolve_path("multitrans.log") == tmp_path.resolve() / "multitrans.log"


def test_resolve_path_expands_environment_variables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MULTITRANS_HOME", str(tmp_path))

    resolved: Path = FileUtils.resolve_path("$MULTITRANS_HOME/logs/multitrans.log", base_dir=Path("/elsewhere"))

    assert resolved == tmp_path.resolve() / "logs" / "multitrans.log"


def test_require_file_accepts_matching_suffix(tmp_path: Path) -> None:
    path: Path = tmp_path / "Providers.JSON"
    path.write_text("[]", encoding="utf-8")

    assert FileUtils.require_file(path, [".json"]) is path


def test_require_file_rejects_missing_file_and_directories(tmp_path: Path) -> None:
    with pytest.raises(FileMissingError):
        FileUtils.require_file(tmp_path / "absent.json", [".json"])
    with pytest.raises(FileMissingError):
        FileUtils.require_file(tmp_path, [".json"])


def test_require_file_rejects_other_suffix(tmp_path: Path) -> None:
    path: Path = tmp_path / "providers.yaml"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(UnsupportedFileFormatError, match=".yaml"):
        FileUtils.require_file(path, [".json"])
