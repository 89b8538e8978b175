"""批处理编排：并发汇总、进度、halt on error 与报告测试。"""

from __future__ import annotations

import csv
import threading
from dataclasses import replace
from pathlib import Path

import pytest
from PIL import Image

from density_converter.core.config import Platform, build_config
from density_converter.core.exceptions import InvalidConfigurationError
from density_converter.core.models import JOB_FAILED, JOB_HALTED, JOB_SUCCESS, BatchReport
from density_converter.core.progress import ProgressUpdate
from density_converter.core.report import write_csv_report
from density_converter.processing.pipeline import execute, execute_in_background
from density_converter.processing.platforms import WebConverter


def _make_sources(folder: Path, names: list[str], size: tuple[int, int] = (100, 200)) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    for name in names:
        Image.new("RGB", size, "blue").save(folder / name)
    return folder


def _tree_mtimes(root: Path) -> dict[Path, int]:
    return {path: path.stat().st_mtime_ns for path in root.rglob("*") if path.is_file()}


def test_execute_counts_every_retained_bucket(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png", "b.png"])
    output = tmp_path / "output"
    config = build_config(source, 2, destination=output, skip_upscaling=True, worker_count=3)

    report = execute(config)

    # android 3 + ios 2 + web 2 + windows 4 档位，每个文件 11 个
    assert report.total_jobs == 8
    assert report.finished_jobs == 8
    assert report.finished_count == 22
    assert report.errors == []
    assert not report.halted
    assert report.succeeded_jobs == 8
    assert len(report.produced_files()) == 22
    assert (output / "android" / "drawable-xhdpi" / "a.png").exists()
    assert (output / "ios" / "b.imageset" / "b@2x.png").exists()
    assert (output / "web" / "img" / "a-2x.png").exists()
    assert (output / "windows" / "Assets" / "b.scale-150.png").exists()


def test_execute_collects_failures_without_stopping(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["good.png", "other.png"])
    (source / "broken.png").write_text("not an image")
    config = build_config(source, 1, destination=tmp_path / "output", platform=Platform.WEB, worker_count=2)

    report = execute(config)

    assert report.total_jobs == 3
    assert report.finished_jobs == 3
    assert report.succeeded_jobs == 2
    assert len(report.errors) == 1
    failure = report.errors[0]
    assert failure.source_path.name == "broken.png"
    assert failure.platform is Platform.WEB
    assert "broken.png" in failure.message
    assert not report.halted
    assert "error:" in report.log


def test_execute_reports_log_and_progress(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png", "b.png", "c.png"])
    config = build_config(source, 2, destination=tmp_path / "output", platform=Platform.ANDROID)
    updates: list[ProgressUpdate] = []
    finished: list[BatchReport] = []

    report = execute(config, progress_callback=updates.append, finished_callback=finished.append)

    fractions = [update.fraction for update in updates]
    assert fractions[0] == 0.0
    assert fractions[-1] == 1.0
    assert fractions == sorted(fractions)
    assert updates[-1].finished_count == report.finished_count
    assert not any(update.halted for update in updates)
    assert finished == [report]
    assert report.log.count("android-converter:") == 3
    assert report.elapsed_ms >= 0


def test_callbacks_run_on_calling_thread(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png", "b.png"])
    config = build_config(source, 1, destination=tmp_path / "output", platform=Platform.WEB, worker_count=4)
    caller = threading.current_thread()
    seen: set[threading.Thread] = set()

    execute(config, progress_callback=lambda _update: seen.add(threading.current_thread()))

    assert seen == {caller}


def test_halt_on_error_stops_scheduling(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", [f"img{i}.png" for i in range(6)])
    (source / "a_broken.png").write_text("not an image")
    config = build_config(
        source, 1, destination=tmp_path / "output", platform=Platform.ANDROID, worker_count=1, halt_on_error=True
    )

    report = execute(config)

    assert report.halted
    assert report.total_jobs == 7
    assert len(report.errors) == 1
    assert report.errors[0].source_path.name == "a_broken.png"
    assert len(report.results) == report.total_jobs
    # 单线程下失败任务之后不会再有任务开始执行
    assert report.finished_jobs == 1
    assert report.finished_count == 0
    assert report.halted_jobs == report.total_jobs - report.finished_jobs
    statuses = {result.status for result in report.results}
    assert JOB_HALTED in statuses
    assert statuses <= {JOB_SUCCESS, JOB_FAILED, JOB_HALTED}


def test_halt_on_error_lets_running_job_finish(tmp_path: Path, monkeypatch) -> None:
    source = _make_sources(tmp_path / "input", ["b_running.png", "c.png", "d.png"])
    (source / "a_broken.png").write_text("not an image")
    config = build_config(
        source, 1, destination=tmp_path / "output", platform=Platform.WEB, worker_count=2, halt_on_error=True
    )
    running_started = threading.Event()
    failure_recorded = threading.Event()
    original_convert = WebConverter.convert

    def gated_convert(self, source_path, job_config, log):
        if source_path.name == "a_broken.png":
            # 等另一个任务开始执行后再失败
            running_started.wait(timeout=10)
        elif source_path.name == "b_running.png":
            running_started.set()
            failure_recorded.wait(timeout=10)
        return original_convert(self, source_path, job_config, log)

    def on_progress(update: ProgressUpdate) -> None:
        if update.message and update.message.startswith(JOB_FAILED):
            failure_recorded.set()

    monkeypatch.setattr(WebConverter, "convert", gated_convert)

    report = execute(config, progress_callback=on_progress)

    by_name = {result.source_path.name: result for result in report.results}
    assert report.halted
    assert failure_recorded.is_set()
    assert by_name["a_broken.png"].status == JOB_FAILED
    assert by_name["b_running.png"].status == JOB_SUCCESS
    assert by_name["c.png"].status == JOB_HALTED
    assert by_name["d.png"].status == JOB_HALTED
    assert report.finished_jobs == 2
    assert report.finished_count == by_name["b_running.png"].processed_buckets == 2
    assert report.finished_jobs + report.halted_jobs == report.total_jobs
    assert (tmp_path / "output" / "img" / "b_running-2x.png").exists()
    assert not (tmp_path / "output" / "img" / "c-1x.png").exists()


def test_skip_existing_second_run_produces_nothing(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png", "b.png"])
    output = tmp_path / "output"
    config = build_config(source, 3, destination=output, skip_existing=True)

    first = execute(config)
    mtimes = _tree_mtimes(output)
    second = execute(config)

    assert first.produced_files()
    assert output / "ios" / "a.imageset" / "Contents.json" in mtimes
    assert second.produced_files() == []
    assert second.errors == []
    assert _tree_mtimes(output) == mtimes


def test_invalid_config_raises_before_any_work(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png"])
    output = tmp_path / "output"
    config = build_config(source, 2, destination=output)
    broken = replace(config, worker_count=0)

    with pytest.raises(InvalidConfigurationError):
        execute(broken)

    assert not output.exists()


def test_execute_with_empty_source(tmp_path: Path) -> None:
    source = tmp_path / "empty"
    source.mkdir()
    updates: list[ProgressUpdate] = []

    report = execute(build_config(source), progress_callback=updates.append)

    assert report.total_jobs == 0
    assert report.finished_count == 0
    assert updates[-1].fraction == 1.0


def test_execute_in_background_invokes_finished_callback(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["a.png"])
    config = build_config(source, 2, destination=tmp_path / "output", platform=Platform.WEB)
    done = threading.Event()
    reports: list[BatchReport] = []

    def on_finished(report: BatchReport) -> None:
        reports.append(report)
        done.set()

    thread = execute_in_background(config, finished_callback=on_finished)
    thread.join(timeout=30)

    assert done.is_set()
    assert reports[0].finished_count == 2


def test_csv_report_lists_outputs_and_failures(tmp_path: Path) -> None:
    source = _make_sources(tmp_path / "input", ["good.png"])
    (source / "broken.png").write_text("not an image")
    config = build_config(source, 2, destination=tmp_path / "output", platform=Platform.WEB)

    report = execute(config)
    report_path = write_csv_report(report, tmp_path / "reports" / "report.csv")

    with report_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))

    assert len(rows) == 3
    statuses = sorted(row["status"] for row in rows)
    assert statuses == [JOB_FAILED, JOB_SUCCESS, JOB_SUCCESS]
    failed_row = next(row for row in rows if row["status"] == JOB_FAILED)
    assert failed_row["platform"] == "web"
    assert failed_row["message"]
