from unittest.mock import Mock

import pytest
import requests

from eventpass import main as cli
from eventpass.pending_queue import append_pending, read_pending
from eventpass.registrations import COLUMNS
from tests.conftest import make_input


@pytest.fixture(autouse=True)
def _offline(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("eventpass.pipeline.requests.get", Mock(side_effect=requests.ConnectionError("offline")))


def test_template_command(tmp_path) -> None:
    assert cli.main(["template", str(tmp_path / "t.csv")]) == 0
    assert (tmp_path / "t.csv").read_text(encoding="utf-8").startswith(",".join(COLUMNS))


def test_qr_then_scan(tmp_path, capsys) -> None:
    target = tmp_path / "qr.png"
    assert cli.main(["qr", "f4vjeuhoa707", "--out", str(target)]) == 0
    assert target.exists()
    assert cli.main(["scan", str(target)]) == 0
    assert capsys.readouterr().out.strip() == "F4VJEUHOA707"


def test_scan_without_code(tmp_path) -> None:
    from PIL import Image

    blank = tmp_path / "blank.png"
    Image.new("RGB", (100, 100), "white").save(blank)
    assert cli.main(["scan", str(blank)]) == 1


def test_render_command(tmp_path) -> None:
    csv_path = tmp_path / "regs.csv"
    csv_path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "Asha,Perera,asha@example.com,Annual Tech Summit,F4VJEUHOA707\n",
        encoding="utf-8",
    )
    out = tmp_path / "out"
    assert cli.main(["render", str(csv_path), "--out", str(out)]) == 0
    assert (out / "event-pass-F4VJEUHOA707.pdf").exists()
    assert (out / "event-pass-F4VJEUHOA707.png").exists()


def test_retry_command(tmp_path) -> None:
    append_pending(make_input())
    assert cli.main(["retry"]) == 0
    assert read_pending() == []
    assert (tmp_path / "output_passes" / "event-pass-F4VJEUHOA707.pdf").exists()


def test_render_command_with_svg_preview(tmp_path) -> None:
    csv_path = tmp_path / "regs.csv"
    csv_path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "Asha,Perera,asha@example.com,Annual Tech Summit,F4VJEUHOA707\n",
        encoding="utf-8",
    )
    out = tmp_path / "out"
    assert cli.main(["render", str(csv_path), "--out", str(out), "--svg"]) == 0
    assert (out / "event-pass-F4VJEUHOA707.svg").read_text(encoding="utf-8").startswith("<svg ")


def test_render_rejects_duplicate_codes(tmp_path) -> None:
    csv_path = tmp_path / "regs.csv"
    csv_path.write_text(
        "first_name,surname,email,event_name,unique_code\n"
        "Asha,Perera,asha@example.com,Summit,F4VJEUHOA707\n"
        "Ravi,Silva,ravi@example.com,Summit,F4VJEUHOA707\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="line 3"):
        cli.main(["render", str(csv_path), "--out", str(tmp_path / "out")])
