"""Tests for the command-line interface."""

import json

import pytest

from ziptax.cli import build_parser, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ZIPTAX_DATA_DIR", "ZIPTAX_DEFAULT_LOCAL_RATE", "ZIPTAX_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_lookup_json(capsys):
    main(["lookup", "60601-1234", "--json"])
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    assert body["zip"] == "60601"
    assert body["combinedRate"] == 10.25
    assert body["categoryRates"]["liquorSpirits"] == 39.75


def test_lookup_json_invalid_zip(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["lookup", "123", "--json"])
    assert exc.value.code == 1
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is False
    assert "5-digit" in body["error"]


def test_lookup_panel(capsys):
    main(["lookup", "60601"])
    out = capsys.readouterr().out
    assert "Chicago" in out
    assert "10.25%" in out
    assert "liquorSpirits" in out


def test_lookup_unrecognized_panel(capsys):
    main(["lookup", "99999"])
    assert "not recognized" in capsys.readouterr().out


def test_batch_exports(tmp_path, capsys):
    zips = tmp_path / "zips.csv"
    zips.write_text("store,zip\nA,60601\nB,12\nC,75201\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    main([
        "batch", "--file", str(zips), "--output-dir", str(out_dir),
        "--export-json", "report.json", "--export-csv", "rates.csv",
    ])

    report = json.loads((out_dir / "report.json").read_text(encoding="utf-8"))
    assert report["summary"]["total_lookups"] == 2
    assert report["errors"] == ["Row 3: Valid 5-digit ZIP code required, got '12'"]
    assert (out_dir / "rates.csv").read_text(encoding="utf-8").startswith("zip,")
    assert "Skipping" in capsys.readouterr().out


def test_batch_without_exports_writes_nothing(tmp_path, monkeypatch, capsys):
    zips = tmp_path / "zips.csv"
    zips.write_text("zip\n60601\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    main(["batch", "--file", str(zips)])

    assert "Zip Rate Lookup" in capsys.readouterr().out
    assert not (tmp_path / "reports").exists()


def test_batch_requires_zip_column(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("postal\n60601\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["batch", "--file", str(bad), "--output-dir", str(tmp_path)])
    assert exc.value.code == 1


def test_states_single(capsys):
    main(["states", "--state", "il"])
    out = capsys.readouterr().out
    assert "Illinois" in out
    assert "CompositeBreakdownStrategy" in out


def test_states_single_lists_overlays(capsys):
    main(["states", "--state", "IL"])
    out = capsys.readouterr().out
    assert "Category Overlays" in out
    assert "$8.55" in out
    assert "Chicago" in out


def test_states_unknown(capsys):
    with pytest.raises(SystemExit):
        main(["states", "--state", "ZZ"])


def test_check_packaged_tables(capsys):
    main(["check"])
    assert "Rate tables OK." in capsys.readouterr().out


def test_check_broken_directory(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["check", "--data-dir", str(tmp_path)])
    assert exc.value.code == 1


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 0


def test_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["lookup", "60601", "--json"])
    assert args.zip == "60601"
    assert args.json is True


def test_invalid_settings_json_error(monkeypatch, capsys):
    monkeypatch.setenv("ZIPTAX_DEFAULT_LOCAL_RATE", "abc")
    with pytest.raises(SystemExit) as exc:
        main(["lookup", "60601", "--json"])
    assert exc.value.code == 1
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is False
    assert "ZIPTAX_DEFAULT_LOCAL_RATE" in body["error"]


def test_invalid_settings_exits_cleanly(monkeypatch, capsys):
    monkeypatch.setenv("ZIPTAX_DEFAULT_LOCAL_RATE", "-1")
    with pytest.raises(SystemExit) as exc:
        main(["states"])
    assert exc.value.code == 1
    assert "Invalid configuration" in capsys.readouterr().out
