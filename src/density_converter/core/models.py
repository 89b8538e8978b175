"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from density_converter.core.config import Platform

JOB_SUCCESS = "success"
JOB_FAILED = "failed"
JOB_HALTED = "halted"


@dataclass(frozen=True, slots=True)
class Dimension:
    """像素尺寸。"""

    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True, slots=True, order=True)
class DensityDescriptor:
    """平台定义的密度档位，按 scale 升序排列。

    token 为目录名（Android、Windows）或文件名后缀（Web、iOS）。
    """

    scale: float
    name: str
    token: str


BucketMap = dict[DensityDescriptor, Dimension]


@dataclass(frozen=True, slots=True)
class ProducedFile:
    """一次压缩写出的文件。"""

    path: Path
    size_bytes: int


@dataclass(slots=True)
class JobResult:
    """单个（源文件 × 平台）任务的处理结果。"""

    source_path: Path
    platform: Platform
    status: str
    produced: list[ProducedFile] = field(default_factory=list)
    processed_buckets: int = 0
    log: str = ""
    message: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.status == JOB_SUCCESS


@dataclass(frozen=True, slots=True)
class JobFailure:
    """汇总报告中的失败记录。"""

    source_path: Path
    platform: Platform
    message: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.source_path.name} [{self.platform.value}]: {self.message}"


@dataclass(slots=True)
class BatchReport:
    """批处理结束后的汇总信息。"""

    total_jobs: int
    finished_jobs: int
    finished_count: int
    errors: list[JobFailure]
    elapsed_ms: int
    halted: bool
    log: str
    results: list[JobResult] = field(default_factory=list)

    @property
    def succeeded_jobs(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def halted_jobs(self) -> int:
        return sum(1 for result in self.results if result.status == JOB_HALTED)

    def produced_files(self) -> list[ProducedFile]:
        """返回所有成功写出的文件，方便生成报告。"""

        return [produced for result in self.results for produced in result.produced]
