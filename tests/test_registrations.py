import datetime as dt

import pytest

from eventpass import registrations
from eventpass.codes import generate_unique_code
from eventpass.registrations import COLUMNS, export_template_csv, load_registrations_csv


def test_load_csv_case_insensitive(tmp_path) -> None:
    path = tmp_path / "regs.csv"
    path.write_text(
        "First_Name,Surname,EMAIL,Event_Name,Unique_Code,Event_Start,Registered_At\n"
        "Asha,Perera,Asha@Example.com,Annual Tech Summit,f4vjeuhoa707,2025-03-01T09:00:00Z,2025-02-10T08:15:30+00:00\n"
        ",,,,,,\n",
        encoding="utf-8",
    )
    [row] = load_registrations_csv(path)
    assert row.full_name == "Asha Perera"
    assert row.email == "asha@example.com"
    assert row.unique_code == "F4VJEUHOA707"
    assert row.event_start == dt.datetime(2025, 3, 1, 9, 0, tzinfo=dt.timezone.utc)
    assert row.event_end is None
    assert row.venue == "" and row.mobile_number == ""


def test_missing_required_column(tmp_path) -> None:
    path = tmp_path / "regs.csv"
    path.write_text("first_name,surname\nA,B\n", encoding="utf-8")
    with pytest.raises(ValueError, match="email"):
        load_registrations_csv(path)


def test_bad_timestamp_reports_line(tmp_path) -> None:
    path = tmp_path / "regs.csv"
    path.write_text(
        "first_name,surname,email,event_name,unique_code,event_start\n"
        "A,B,a@b.c,Ev,ABCDEFGHIJ12,yesterday\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="line 2"):
        load_registrations_csv(path)


def test_export_template_roundtrips(tmp_path) -> None:
    path = tmp_path / "template.csv"
    export_template_csv(path)
    assert path.read_text(encoding="utf-8").strip() == ",".join(COLUMNS)
    assert load_registrations_csv(path) == []


def test_rows_without_code_get_unique_codes(tmp_path) -> None:
    path = tmp_path / "regs.csv"
    path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "A,One,a@x.io,Ev,\n"
        "B,Two,b@x.io,Ev,\n"
        "C,Three,c@x.io,Ev,ABCDEFGHIJ12\n",
        encoding="utf-8",
    )
    rows = load_registrations_csv(path)
    codes = [r.unique_code for r in rows]
    assert codes[2] == "ABCDEFGHIJ12"
    assert len(set(codes)) == 3
    assert all(len(c) == 12 and c.isalnum() and c.upper() == c for c in codes)


def test_duplicate_explicit_code_is_rejected(tmp_path) -> None:
    path = tmp_path / "regs.csv"
    path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "A,One,a@x.io,Ev,ABCDEFGHIJ12\n"
        "B,Two,b@x.io,Ev,abcdefghij12\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="line 3: duplicate unique_code ABCDEFGHIJ12"):
        load_registrations_csv(path)


def test_generated_code_avoids_later_explicit_code(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    drawn = iter(["ABCDEFGHIJ12", "ZYXWVUTSRQ98"])

    def scripted(exists, max_attempts):
        return generate_unique_code(exists, max_attempts, generate=lambda: next(drawn))

    monkeypatch.setattr(registrations, "generate_unique_code", scripted)
    path = tmp_path / "regs.csv"
    path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "A,One,a@x.io,Ev,\n"
        "B,Two,b@x.io,Ev,ABCDEFGHIJ12\n",
        encoding="utf-8",
    )
    assert [r.unique_code for r in load_registrations_csv(path)] == ["ZYXWVUTSRQ98", "ABCDEFGHIJ12"]
