from pathlib import Path

import pytest

from dotvec.app.cli import main

SETTINGS = """
[store]
backend = "sqlite"
data_dir = "{data_dir}"
name = "cli-test"

[embeddings]
provider = "dummy"
model = "dummy"
dimension = 16

[search]
top_k = 3
"""


@pytest.fixture
def settings_path(tmp_path: Path, monkeypatch) -> str:
    for var in ("DOTVEC_DATA_DIR", "DOTVEC_STORE_NAME"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("dotvec.settings.load_dotenv", lambda: False)
    path = tmp_path / "settings.toml"
    path.write_text(SETTINGS.format(data_dir=(tmp_path / "data").as_posix()), encoding="utf-8")
    return str(path)


def test_add_search_list_delete(settings_path: str, tmp_path: Path, capsys) -> None:
    doc = tmp_path / "doc.txt"
    doc.write_text("alpha paragraph\n\nbeta paragraph\n", encoding="utf-8")

    assert main(["--settings", settings_path, "add", "--file", str(doc)]) == 0
    out = capsys.readouterr().out
    assert "Created new store" in out
    assert "Added 2 paragraph(s)" in out

    assert main(["--settings", settings_path, "search", "alpha paragraph"]) == 0
    out = capsys.readouterr().out
    assert "1.0000" in out
    assert "alpha paragraph" in out
    assert "Created new store" not in out

    assert main(["--settings", settings_path, "list"]) == 0
    assert "2 vector(s)" in capsys.readouterr().out

    assert main(["--settings", settings_path, "delete", "some-id"]) == 0
    assert "store count: 2" in capsys.readouterr().out


def test_other_store_name(settings_path: str, capsys) -> None:
    assert main(["--settings", settings_path, "--store", "elsewhere", "add", "only one"]) == 0
    assert main(["--settings", settings_path, "--store", "elsewhere", "list"]) == 0
    assert "1 vector(s)" in capsys.readouterr().out


def test_missing_settings_reports_error(tmp_path: Path, capsys) -> None:
    assert main(["--settings", str(tmp_path / "missing.toml"), "list"]) == 1
    assert "Missing config file" in capsys.readouterr().out


@pytest.mark.parametrize("top_k", ["51", "-1", "many"])
def test_search_top_k_out_of_range_is_usage_error(settings_path: str, top_k: str, capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--settings", settings_path, "search", "alpha", "--top-k", top_k])

    assert exc.value.code == 2
    assert "--top-k" in capsys.readouterr().err


def test_search_top_k_at_cap_is_accepted(settings_path: str, capsys) -> None:
    assert main(["--settings", settings_path, "add", "alpha\n\nbeta"]) == 0
    assert main(["--settings", settings_path, "search", "alpha", "--top-k", "50"]) == 0
    assert "Top 2 for" in capsys.readouterr().out
