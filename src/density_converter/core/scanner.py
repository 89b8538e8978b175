"""待处理文件的扫描与筛选逻辑。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from density_converter.core.config import ConverterConfig
from density_converter.core.output_manager import SUPPORTED_EXTENSIONS


def _iter_candidate_files(path: Path) -> Iterator[Path]:
    """单文件直接返回，目录只遍历第一层。"""

    if path.is_file():
        yield path
        return

    if not path.is_dir():
        return

    for candidate in path.iterdir():
        if candidate.is_file():
            yield candidate


def collect_source_files(config: ConverterConfig) -> list[Path]:
    """根据配置返回需要转换的源图片列表（按文件名排序）。"""

    collected = [
        candidate
        for candidate in _iter_candidate_files(config.source)
        if candidate.suffix.lower() in SUPPORTED_EXTENSIONS
    ]
    collected.sort(key=lambda x: str(x).lower())
    return collected
