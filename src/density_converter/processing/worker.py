"""并发处理的工作单元。"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from density_converter.core.config import ConverterConfig
from density_converter.core.exceptions import DensityConverterError
from density_converter.core.models import JOB_FAILED, JOB_HALTED, JOB_SUCCESS, JobResult
from density_converter.processing.converter import ConversionLog, PlatformConverter

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConversionTask:
    """描述单个（源文件 × 平台）转换任务，由执行它的工作线程独占。"""

    source_path: Path
    converter: PlatformConverter
    config: ConverterConfig


def run_task(task: ConversionTask, halt_event: Optional[threading.Event] = None) -> JobResult:
    """在工作线程中执行一次平台转换，异常被捕获为失败结果。

    开启 halt_on_error 时失败任务立即设置 halt_event，之后开始的任务直接返回 halted。
    """

    platform = task.converter.platform

    if halt_event is not None and halt_event.is_set():
        return JobResult(
            source_path=task.source_path,
            platform=platform,
            status=JOB_HALTED,
            message="因前序任务失败已停止（halt on error）",
        )

    log = ConversionLog()
    status = JOB_SUCCESS
    message: Optional[str] = None
    error: Optional[BaseException] = None

    try:
        task.converter.convert(task.source_path, task.config, log)
    except DensityConverterError as exc:
        LOGGER.debug("转换失败 %s [%s]: %s", task.source_path, platform.value, exc)
        status, message, error = JOB_FAILED, str(exc), exc
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("转换任务异常：%s [%s]", task.source_path, platform.value)
        status, message, error = JOB_FAILED, f"{type(exc).__name__}: {exc}", exc

    if error is not None:
        log.add(f"error: {message}")
        if task.config.halt_on_error and halt_event is not None:
            halt_event.set()

    return JobResult(
        source_path=task.source_path,
        platform=platform,
        status=status,
        produced=log.produced,
        processed_buckets=log.processed_buckets,
        log=log.text(),
        message=message,
        error=error,
    )
