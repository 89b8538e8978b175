"""命令行入口测试。"""

from __future__ import annotations

import csv
from pathlib import Path

from PIL import Image
from typer.testing import CliRunner

from density_converter.cli.main import app

runner = CliRunner()


def _make_source(tmp_path: Path) -> Path:
    source = tmp_path / "input"
    source.mkdir()
    Image.new("RGB", (64, 32), "orange").save(source / "banner.png")
    return source


def test_cli_converts_and_writes_report(tmp_path: Path) -> None:
    source = _make_source(tmp_path)
    output = tmp_path / "output"
    report_path = tmp_path / "report.csv"

    result = runner.invoke(
        app,
        [str(source), "--output", str(output), "--platform", "web", "--scale", "2", "--report", str(report_path)],
    )

    assert result.exit_code == 0, result.output
    assert "完成任务 1/1" in result.output
    with Image.open(output / "img" / "banner-1x.png") as img:
        assert img.size == (32, 16)
    assert (output / "img" / "banner-2x.png").exists()

    with report_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 2


def test_cli_rejects_invalid_quality(tmp_path: Path) -> None:
    source = _make_source(tmp_path)

    result = runner.invoke(app, [str(source), "--quality", "1.5"])

    assert result.exit_code == 2


def test_cli_dry_run_creates_no_output(tmp_path: Path) -> None:
    source = _make_source(tmp_path)
    output = tmp_path / "output"

    result = runner.invoke(app, [str(source), "--output", str(output), "--dry-run", "--verbose"])

    assert result.exit_code == 0, result.output
    assert not output.exists()
    assert "dry-run" in result.output
