from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main as cli  # noqa: E402


def test_synthetic_report(capsys) -> None:
    code = cli.main(
        ["--sample-rate", "64", "--sample-size", "64", "--frequencies", "10", "12.5", "--band", "8", "12"]
    )
    out = capsys.readouterr().out

    assert code == 0
    assert out.count("block ") == 4
    assert "10Hz=" in out
    assert "12.5Hz=" in out
    assert "weighted band trend over 4 blocks" in out


def test_csv_report_with_settings_file(tmp_path: Path, capsys) -> None:
    settings = tmp_path / "acq.yaml"
    settings.write_text("acquisition:\n  sample_rate: 32\n  sample_size: 32\n", encoding="utf-8")
    csv_path = tmp_path / "signal.csv"
    samples = cli.synthetic_signal(80, 32, freqs_hz=(5.0,))
    csv_path.write_text("raw\n" + "\n".join(f"{v:.6f}" for v in samples) + "\n", encoding="utf-8")

    code = cli.main(
        ["--config", str(settings), "--csv", str(csv_path), "--frequencies", "5", "--band", "4", "6", "--detrend"]
    )
    out = capsys.readouterr().out

    assert code == 0
    assert out.count("block ") == 2


def test_too_short_signal_reports_failure(tmp_path: Path, capsys) -> None:
    csv_path = tmp_path / "short.csv"
    csv_path.write_text("\n".join(str(v) for v in np.zeros(10)) + "\n", encoding="utf-8")

    code = cli.main(["--sample-rate", "64", "--sample-size", "64", "--csv", str(csv_path)])

    assert code == 1
    assert "Not enough samples" in capsys.readouterr().out


def test_invalid_sample_size_exits() -> None:
    with pytest.raises(SystemExit):
        cli.main(["--sample-size", "500"])


def test_out_of_range_band_exits() -> None:
    with pytest.raises(SystemExit):
        cli.main(["--sample-rate", "64", "--sample-size", "64", "--band", "8", "40"])


def test_report_names_dominant_frequency(capsys) -> None:
    code = cli.main(["--sample-rate", "64", "--sample-size", "64", "--frequencies", "10", "--band", "8", "12"])
    out = capsys.readouterr().out

    assert code == 0
    line = next(l for l in out.splitlines() if l.startswith("dominant frequency:"))
    assert line.split()[2] in {"10.00", "22.00"}


def test_band_pass_uses_configured_filter_order(tmp_path: Path, capsys, caplog) -> None:
    settings = tmp_path / "acq.yaml"
    settings.write_text(
        "acquisition:\n  sample_rate: 64\n  sample_size: 64\n  filter_order: 2\n", encoding="utf-8"
    )
    argv = ["--config", str(settings), "--frequencies", "10", "--band", "8", "12", "--band-pass", "6", "14"]

    with caplog.at_level(logging.INFO, logger="biospectra.cli"):
        code = cli.main(argv)

    assert code == 0
    assert "order 2" in caplog.text
    assert capsys.readouterr().out.count("block ") == 4


def test_invalid_filter_order_exits(tmp_path: Path) -> None:
    settings = tmp_path / "acq.yaml"
    settings.write_text("acquisition:\n  sample_rate: 64\n  sample_size: 64\n  filter_order: 0\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        cli.main(["--config", str(settings), "--band-pass", "6", "14"])
