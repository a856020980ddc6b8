import io
import json

from plugins.unit_converter import cli


def _run(capsys, argv):
    code = cli.main(argv)
    return code, json.loads(capsys.readouterr().out)


def test_convert_lines_from_arguments(capsys):
    code, payload = _run(capsys, ["convert", "1 meter to foot", "20 degC to degF"])
    assert code == 0
    assert [item["formatted"] for item in payload["results"]] == ["3.2808", "68"]
    assert payload["summary"]["converted"] == 2


def test_convert_reads_stdin(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("100 cfm to m3/h\n\n5 meters\n"))
    code, payload = _run(capsys, ["convert"])
    assert code == 1
    assert payload["results"][0]["formatted"] == "169.9011"
    assert payload["results"][1] == {"success": False, "empty": True}
    assert payload["results"][2]["error"]["kind"] == "INVALID_FORMAT"


def test_categories_command(capsys):
    code, payload = _run(capsys, ["categories"])
    assert code == 0
    assert "thermal-transmittance" in payload["categories"]


def test_units_command(capsys):
    code, payload = _run(capsys, ["units", "--category", "pressure"])
    assert code == 0
    assert {unit["key"] for unit in payload["units"]} >= {"pa", "psi", "atm"}

    code, payload = _run(capsys, ["units", "--category", "luminosity"])
    assert code == 1
    assert payload["error"]["kind"] == "INVALID_FORMAT"


def test_check_command_accepts_bundled_documents(capsys):
    code, payload = _run(capsys, ["check"])
    assert code == 0
    assert payload["valid"] is True
    assert payload["categories"]["length"]["errors"] == []


def test_check_command_flags_broken_documents(capsys, config_dir, write_category, length_document):
    write_category(config_dir, length_document)
    broken = dict(length_document, category="area")
    write_category(config_dir, broken, name="volume")
    (config_dir / "mass.json").write_text("{", encoding="utf-8")
    code, payload = _run(capsys, ["--config-dir", str(config_dir), "check"])
    assert code == 1
    report = payload["categories"]
    assert report["length"]["valid"] is True
    assert report["volume"]["valid"] is False
    assert report["mass"]["valid"] is False


def test_missing_config_directory_is_reported(capsys, tmp_path):
    code, payload = _run(capsys, ["--config-dir", str(tmp_path / "nowhere"), "categories"])
    assert code == 1
    assert payload["error"]["kind"] == "CONFIGURATION_ERROR"
