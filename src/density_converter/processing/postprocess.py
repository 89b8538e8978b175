"""外部后处理工具：pngcrush 无损压缩 PNG，cwebp 额外生成 WebP。

后处理失败只记为警告，已写出的主输出文件保持不变。
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from density_converter.core.config import ConverterConfig
from density_converter.core.exceptions import PostProcessingError
from density_converter.core.models import ProducedFile
from density_converter.core.output_manager import JPG, PNG

LOGGER = logging.getLogger(__name__)

PNGCRUSH = "pngcrush"
CWEBP = "cwebp"


@dataclass(slots=True)
class PostProcessOutcome:
    """后处理额外产出的文件与警告信息。"""

    produced: list[ProducedFile] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def run_post_processors(path: Path, compression: str, config: ConverterConfig) -> PostProcessOutcome:
    """按配置对刚写出的文件执行后处理。"""

    outcome = PostProcessOutcome()

    if config.enable_png_crush and compression == PNG:
        try:
            crush_png(path)
        except PostProcessingError as exc:
            LOGGER.warning("pngcrush 处理失败 %s: %s", path, exc)
            outcome.warnings.append(str(exc))

    if config.enable_webp_conversion and compression in {PNG, JPG}:
        try:
            outcome.produced.append(convert_to_webp(path, config.compression_quality))
        except PostProcessingError as exc:
            LOGGER.warning("cwebp 转换失败 %s: %s", path, exc)
            outcome.warnings.append(str(exc))

    return outcome


def crush_png(path: Path) -> None:
    """使用 pngcrush 无损压缩，仅在结果更小时替换原文件。"""

    executable = _require_tool(PNGCRUSH)
    tmp_path = path.with_name(path.stem + ".crush.tmp.png")
    try:
        _run([executable, "-q", "-rem", "alla", "-reduce", str(path), str(tmp_path)], PNGCRUSH)
        if tmp_path.exists() and tmp_path.stat().st_size < path.stat().st_size:
            tmp_path.replace(path)
    finally:
        tmp_path.unlink(missing_ok=True)


def convert_to_webp(path: Path, quality: float) -> ProducedFile:
    """使用 cwebp 在原文件旁生成同名 .webp 文件。"""

    executable = _require_tool(CWEBP)
    destination = path.with_suffix(".webp")
    q = max(0, min(100, int(round(quality * 100))))
    _run([executable, "-quiet", "-q", str(q), str(path), "-o", str(destination)], CWEBP)

    if not destination.exists():
        raise PostProcessingError(f"{CWEBP} 未生成输出文件: {destination}")
    return ProducedFile(path=destination, size_bytes=destination.stat().st_size)


def _require_tool(name: str) -> str:
    executable: Optional[str] = shutil.which(name)
    if not executable:
        raise PostProcessingError(f"未找到 {name} 可执行文件，跳过后处理")
    return executable


def _run(cmd: list[str], tool: str) -> None:
    try:
        proc = subprocess.run(cmd, text=True, capture_output=True)
    except OSError as exc:
        raise PostProcessingError(f"{tool} 无法启动: {exc}") from exc

    if proc.returncode != 0:
        detail = proc.stderr.strip() or proc.stdout.strip() or f"exit code {proc.returncode}"
        raise PostProcessingError(f"{tool} 执行失败: {detail}")
