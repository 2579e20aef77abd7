import json

import pytest

from idintake import cli
from idintake.core.config import get_app_settings, get_recognizer_settings, get_reference_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.setattr(cli, "configure_structured_logging", lambda **kwargs: None)
    for accessor in (get_app_settings, get_recognizer_settings, get_reference_settings):
        accessor.cache_clear()
    yield
    for accessor in (get_app_settings, get_recognizer_settings, get_reference_settings):
        accessor.cache_clear()


def test_match_prints_resolved_codes(monkeypatch, capsys, psgc_path):
    monkeypatch.setenv("REFERENCE_SOURCE", "file")
    monkeypatch.setenv("REFERENCE_DATA_PATH", str(psgc_path))

    code = cli.main(["match", "--province", "Pampanga", "--city", "Mabalacat"])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["city"]["code"] == "035409"
    assert output["city"]["zip_code"] == "2010"


def test_postgrest_without_url_exits_with_message(monkeypatch, capsys):
    monkeypatch.setenv("REFERENCE_SOURCE", "postgrest")
    monkeypatch.setenv("REFERENCE_API_URL", "")

    code = cli.main(["match", "--city", "Mabalacat"])

    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "REFERENCE_API_URL" in captured.err


def test_scan_missing_file_exits_2(tmp_path, capsys):
    code = cli.main(["scan", str(tmp_path / "missing.jpg")])
    assert code == 2
    assert "does not exist" in capsys.readouterr().err
