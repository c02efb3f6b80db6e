import json
from datetime import datetime

import parsers
from main import main


def fake_find_dates(line, now):
    if "Midterm" in line:
        return [("Oct 20", datetime(now.year, 10, 20))]
    return []


def test_main_missing_file(capsys):
    assert main(["--input", "does-not-exist.txt", "--no-ai"]) == 1
    assert "Input file not found" in capsys.readouterr().err


def test_main_writes_ics(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(parsers, "find_dates", fake_find_dates)
    monkeypatch.setattr(parsers, "is_valid_academic_date", lambda value, now: True)
    syllabus = tmp_path / "syllabus.txt"
    syllabus.write_text("Welcome\nMidterm exam Oct 20\n", encoding="utf-8")
    out = tmp_path / "out.ics"

    code = main(["--input", str(syllabus), "--ics", str(out), "--no-ai"])

    stdout = capsys.readouterr().out
    assert code == 0
    assert "Found 1 events" in stdout
    assert "Midterm exam" in stdout
    assert "BEGIN:VEVENT" in out.read_text(encoding="utf-8")


def test_main_json_output(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(parsers, "find_dates", fake_find_dates)
    monkeypatch.setattr(parsers, "is_valid_academic_date", lambda value, now: True)
    syllabus = tmp_path / "syllabus.txt"
    syllabus.write_text("Midterm exam Oct 20\n", encoding="utf-8")

    code = main(["--input", str(syllabus), "--json", "--no-ai"])

    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert data["success"] is True
    assert data["events"][0]["type"] == "exam"


def test_main_google_dry_run(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(parsers, "find_dates", fake_find_dates)
    monkeypatch.setattr(parsers, "is_valid_academic_date", lambda value, now: True)
    syllabus = tmp_path / "syllabus.txt"
    syllabus.write_text("Midterm exam Oct 20\n", encoding="utf-8")

    code = main(["--input", str(syllabus), "--google", "--dry-run", "--no-ai"])

    assert code == 0
    assert "Dry run" in capsys.readouterr().out


def test_main_json_with_ics_keeps_stdout_json(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(parsers, "find_dates", fake_find_dates)
    monkeypatch.setattr(parsers, "is_valid_academic_date", lambda value, now: True)
    syllabus = tmp_path / "syllabus.txt"
    syllabus.write_text("Midterm exam Oct 20\n", encoding="utf-8")
    out = tmp_path / "out.ics"

    code = main(["--input", str(syllabus), "--json", "--ics", str(out), "--no-ai"])

    captured = capsys.readouterr()
    assert code == 0
    assert json.loads(captured.out)["events"][0]["title"] == "Midterm exam"
    assert "Wrote ICS to" in captured.err
    assert out.exists()
