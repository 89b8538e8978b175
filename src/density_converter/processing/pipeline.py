"""批处理编排：扫描源文件、按（文件 × 平台）并发转换、汇总日志与错误。"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from typing import Callable, Optional

from density_converter.core.config import ConverterConfig, validate_config
from density_converter.core.models import JOB_FAILED, JOB_HALTED, BatchReport, JobFailure, JobResult
from density_converter.core.progress import ProgressUpdate
from density_converter.core.scanner import collect_source_files
from density_converter.processing.platforms import converters_for
from density_converter.processing.worker import ConversionTask, run_task

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]
FinishedCallback = Optional[Callable[[BatchReport], None]]


def execute(
    config: ConverterConfig,
    progress_callback: ProgressCallback = None,
    finished_callback: FinishedCallback = None,
) -> BatchReport:
    """批量转换入口。

    配置错误在调度任何任务之前同步抛出 InvalidConfigurationError。
    两个回调都在调用线程中触发，不会占用工作线程。
    """

    validate_config(config)
    started = time.perf_counter()

    files = collect_source_files(config)
    converters = converters_for(config)
    tasks = [
        ConversionTask(source_path=path, converter=converter, config=config)
        for path in files
        for converter in converters
    ]
    total = len(tasks)
    LOGGER.info(
        "发现 %d 个源文件，%d 个平台，共 %d 个任务%s",
        len(files),
        len(converters),
        total,
        "（dry-run）" if config.dry_run else "",
    )

    results: list[JobResult] = []
    errors: list[JobFailure] = []
    halt_event = threading.Event()

    if total == 0:
        _emit_progress(progress_callback, completed=0, total=0, message="没有需要处理的图片")
    else:
        _emit_progress(progress_callback, completed=0, total=total, message="开始执行转换任务")
        _run_tasks(config, tasks, halt_event, results, errors, progress_callback)

    report = BatchReport(
        total_jobs=total,
        finished_jobs=sum(1 for result in results if result.status != JOB_HALTED),
        finished_count=sum(result.processed_buckets for result in results),
        errors=errors,
        elapsed_ms=int((time.perf_counter() - started) * 1000),
        halted=halt_event.is_set(),
        log="".join(result.log for result in results),
        results=results,
    )
    LOGGER.info(
        "转换完成：完成任务 %d/%d，错误 %d 个，耗时 %dms%s",
        report.finished_jobs,
        total,
        len(errors),
        report.elapsed_ms,
        "，因错误提前停止" if report.halted else "",
    )

    if finished_callback:
        finished_callback(report)
    return report


def execute_in_background(
    config: ConverterConfig,
    progress_callback: ProgressCallback = None,
    finished_callback: FinishedCallback = None,
) -> threading.Thread:
    """在后台线程中执行批处理，立即返回该线程。

    配置在启动线程前校验，错误同步抛出给调用方。
    """

    validate_config(config)
    thread = threading.Thread(
        target=execute,
        args=(config, progress_callback, finished_callback),
        name="density-converter-batch",
        daemon=True,
    )
    thread.start()
    return thread


def _run_tasks(
    config: ConverterConfig,
    tasks: list[ConversionTask],
    halt_event: threading.Event,
    results: list[JobResult],
    errors: list[JobFailure],
    progress_callback: ProgressCallback,
) -> None:
    """提交全部任务并在当前线程按完成顺序汇总结果。"""

    total = len(tasks)
    completed = 0
    finished_count = 0
    halting = False

    with ThreadPoolExecutor(max_workers=config.worker_count, thread_name_prefix="density-worker") as executor:
        future_map = {executor.submit(run_task, task, halt_event): task for task in tasks}
        for future in as_completed(future_map):
            task = future_map[future]
            try:
                result = future.result()
            except CancelledError:
                result = JobResult(
                    source_path=task.source_path,
                    platform=task.converter.platform,
                    status=JOB_HALTED,
                    message="因前序任务失败已取消（halt on error）",
                )

            results.append(result)
            if result.status == JOB_FAILED:
                _record_failure(result, errors)
                if config.halt_on_error and not halting:
                    LOGGER.warning("任务失败，停止调度剩余任务：%s", result.source_path.name)
                    halting = True
                    halt_event.set()
                    for pending in future_map:
                        pending.cancel()

            completed += 1
            finished_count += result.processed_buckets
            _emit_progress(
                progress_callback,
                completed,
                total,
                f"{result.status} {task.source_path.name} [{task.converter.platform.value}]",
                finished_count=finished_count,
                halted=halting,
            )


def _record_failure(result: JobResult, errors: list[JobFailure]) -> None:
    assert result.error is not None
    LOGGER.error("转换失败 %s [%s]: %s", result.source_path, result.platform.value, result.message)
    errors.append(
        JobFailure(
            source_path=result.source_path,
            platform=result.platform,
            message=result.message or str(result.error),
            error=result.error,
        )
    )


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    message: Optional[str] = None,
    *,
    finished_count: int = 0,
    halted: bool = False,
) -> None:
    if not callback:
        return
    callback(
        ProgressUpdate(
            total=total,
            completed=completed,
            finished_count=finished_count,
            halted=halted,
            message=message,
        )
    )
