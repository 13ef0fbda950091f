"""
Tests for the caller layer: workbook decoding, store snapshots, commit policy
and the CLI entry point.
"""
import json
from datetime import datetime

import pytest
from openpyxl import Workbook as XlsxWorkbook

from app.backend.process import (
    CommitPolicy,
    load_store,
    process_file,
    save_store,
    write_json_output,
)
from app.backend.reader import WorkbookReader
from app.cli import main
from intake.config import reset_settings
from intake.errors import FormatError
from intake.store import POLICYHOLDERS

POLICY_CSV = (
    "Policy Number,Relationship,First Name,Surname,National ID,Package,Status\n"
    "08-111111-C-08,Self,Chipo,Ncube,08-111111-C-08,Standard,Active\n"
    "08-111111-C-08,Son,Tino,Ncube,,,\n"
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in ("INTAKE_PROFILE_PATH", "INTAKE_STORE_PATH", "OUTPUT_JSON_NAME"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def policy_csv(tmp_path):
    path = tmp_path / "policies.csv"
    path.write_text(POLICY_CSV, encoding="utf-8")
    return path


class TestWorkbookReader:

    def test_xlsx_sheets_and_cells(self, tmp_path):
        wb = XlsxWorkbook()
        ws = wb.active
        ws.title = "Policyholders"
        ws.append(["Policy Number", "Date of Birth", "Phone"])
        ws.append(["PN-001", datetime(1980, 1, 15), 771234567])
        ws.append([None, None, None])
        wb.create_sheet("Dependents").append(["Relationship"])
        path = tmp_path / "export.xlsx"
        wb.save(path)

        workbook = WorkbookReader().read(str(path))
        assert [s.name for s in workbook.sheets] == ["Policyholders", "Dependents"]
        rows = workbook.sheets[0].rows
        assert len(rows) == 2
        assert rows[1][0] == "PN-001"
        assert isinstance(rows[1][1], datetime)
        assert workbook.filename == "export.xlsx"

    def test_csv_single_sheet(self, policy_csv):
        workbook = WorkbookReader().read(str(policy_csv))
        assert len(workbook) == 1
        sheet = workbook.sheets[0]
        assert sheet.name == "policies"
        assert sheet.rows[0][0] == "Policy Number"
        assert sheet.rows[2][4] == ""

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        with pytest.raises(FormatError):
            WorkbookReader().read(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkbookReader().read(str(tmp_path / "missing.xlsx"))

    def test_corrupt_xlsx(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip")
        with pytest.raises(FormatError):
            WorkbookReader().read(str(path))


class TestProcessFile:

    def test_dry_run_never_commits(self, policy_csv, tmp_path):
        store_path = tmp_path / "store.json"
        output = process_file(str(policy_csv), store_path=str(store_path))
        assert output["committed"] is False
        assert output["blocked"] is False
        assert output["result"]["source_format"] == "adhoc_policies"
        assert output["result"]["summary"]["inserted"] == 1
        assert not store_path.exists()

    def test_commit_then_reimport_updates(self, policy_csv, tmp_path):
        store_path = tmp_path / "store.json"
        first = process_file(str(policy_csv), store_path=str(store_path), commit=CommitPolicy.IF_CLEAN)
        assert first["committed"] is True
        snapshot = json.loads(store_path.read_text(encoding="utf-8"))
        assert len(snapshot[POLICYHOLDERS]) == 1

        second = process_file(str(policy_csv), store_path=str(store_path), commit="if-clean")
        assert second["result"]["summary"]["updated"] == 1
        assert second["result"]["summary"]["inserted"] == 0
        assert second["result"]["policyholders"][0]["id"] == first["result"]["policyholders"][0]["id"]

    def test_row_errors_block_if_clean_commit(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(POLICY_CSV + ",Child,Lost,Kid,,,\n", encoding="utf-8")
        store_path = tmp_path / "store.json"
        output = process_file(str(path), store_path=str(store_path), commit=CommitPolicy.IF_CLEAN)
        assert output["committed"] is False
        assert output["blocked"] is True
        assert not store_path.exists()

        forced = process_file(str(path), store_path=str(store_path), commit=CommitPolicy.ALWAYS)
        assert forced["committed"] is True
        assert len(load_store(str(store_path)).get_all(POLICYHOLDERS)) == 1

    def test_store_round_trip(self, tmp_path, store_with_holder):
        path = save_store(store_with_holder, str(tmp_path / "nested" / "store.json"))
        assert load_store(path).get_all(POLICYHOLDERS) == store_with_holder.get_all(POLICYHOLDERS)
        assert load_store(None).get_all(POLICYHOLDERS) == []

    def test_write_json_output(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OUTPUT_JSON_NAME", "result.json")
        json_path = write_json_output({"a": 1}, str(tmp_path / "out"))
        assert json_path.endswith("result.json")
        assert json.loads(open(json_path, encoding="utf-8").read()) == {"a": 1}


class TestCli:

    def test_success(self, policy_csv, tmp_path, capsys):
        code = main(["--input", str(policy_csv), "--output-dir", str(tmp_path / "out")])
        assert code == 0
        assert "1 policyholders" in capsys.readouterr().out

    def test_missing_input(self, tmp_path):
        assert main(["--input", str(tmp_path / "nope.csv")]) == 2

    def test_unrecognised_layout(self, tmp_path):
        path = tmp_path / "odd.csv"
        path.write_text("Colour,Shape\nred,square\n", encoding="utf-8")
        assert main(["--input", str(path), "--output-dir", str(tmp_path)]) == 2

    def test_blocked_commit(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(POLICY_CSV + ",Child,Lost,Kid,,,\n", encoding="utf-8")
        code = main([
            "--input", str(path),
            "--store", str(tmp_path / "store.json"),
            "--commit", "if-clean",
            "--output-dir", str(tmp_path),
        ])
        assert code == 1
