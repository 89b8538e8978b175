"""平台转换器的公共流程。

每个平台只提供密度档位与目录/文件命名规则，解码、尺寸计算、缩放、
编码与写出由 ``PlatformConverter.convert`` 统一完成。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from density_converter.core.config import ConverterConfig, Platform, ScaleMode
from density_converter.core.models import BucketMap, DensityDescriptor, Dimension, ProducedFile
from density_converter.core.output_manager import (
    ImageType,
    compressions_for,
    create_and_check_folder,
    decide_destination,
    image_type_for,
    save_image,
)
from density_converter.processing.image_loader import load_image, rasterize_svg, read_svg_dimension
from density_converter.processing.postprocess import run_post_processors
from density_converter.processing.resizing import resize_image
from density_converter.processing.scaling import compute_buckets, compute_hq_dimension

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversionLog:
    """单个任务独占的日志与产出记录。"""

    lines: list[str] = field(default_factory=list)
    produced: list[ProducedFile] = field(default_factory=list)
    processed_buckets: int = 0

    def add(self, line: str) -> None:
        self.lines.append(line)

    def text(self) -> str:
        return "".join(line + "\n" for line in self.lines)


class PlatformConverter(ABC):
    """平台转换器基类，子类只覆盖命名规则与钩子。"""

    platform: Platform
    name: str

    @abstractmethod
    def densities(self, config: ConverterConfig) -> list[DensityDescriptor]:
        """当前配置下启用的密度档位。"""

    @abstractmethod
    def root_output_folder(self, destination: Path, base_name: str, config: ConverterConfig) -> Path:
        """该平台输出的根目录。"""

    @abstractmethod
    def output_folder_for(
        self, root: Path, density: DensityDescriptor, dimension: Dimension, config: ConverterConfig
    ) -> Path:
        """某个密度档位的输出目录。"""

    @abstractmethod
    def output_base_name(
        self, density: DensityDescriptor, dimension: Dimension, base_name: str, config: ConverterConfig
    ) -> str:
        """不含扩展名的输出文件名。"""

    def on_pre_execute(
        self, root: Path, base_name: str, buckets: BucketMap, compressions: list[str], config: ConverterConfig
    ) -> None:
        """每张源图开始写出前调用一次。"""

    def on_post_execute(self, root: Path, base_name: str, log: ConversionLog, config: ConverterConfig) -> None:
        """每张源图全部档位写出后调用一次。"""

    def convert(self, source_path: Path, config: ConverterConfig, log: ConversionLog) -> None:
        """将一张源图转换为该平台的全部密度档位。

        目录创建失败会抛出 FolderCreationError 并中止该图剩余档位；
        读取、编码、写入异常同样向上抛出，由调用方记录。
        """

        image_type = image_type_for(source_path)
        base_name = source_path.stem

        native, master = self._load_master(source_path, image_type, config)
        try:
            unit = "x" if config.scale_mode is ScaleMode.FACTOR else "dp"
            log.add(f"{self.name}: {base_name} {native} ({config.scale:g}{unit})")

            buckets = compute_buckets(
                native,
                config.scale_mode,
                config.scale,
                self.densities(config),
                skip_upscaling=config.skip_upscaling,
                rounding=config.rounding,
            )
            compressions = compressions_for(config.compression_mode, image_type)

            root = create_and_check_folder(
                self.root_output_folder(config.destination, base_name, config), config.dry_run
            )
            self.on_pre_execute(root, base_name, buckets, compressions, config)

            for density, dimension in buckets.items():
                folder = create_and_check_folder(
                    self.output_folder_for(root, density, dimension, config), config.dry_run
                )
                base_path = folder / self.output_base_name(density, dimension, base_name, config)
                log.add(f"process {base_path} with {dimension} (x{density.scale:g})")

                with resize_image(master, dimension, config.enable_anti_aliasing) as resized:
                    self._write_compressions(resized, base_path, compressions, config, log)
                log.processed_buckets += 1

            self.on_post_execute(root, base_name, log, config)
        finally:
            master.close()

    def _load_master(
        self, source_path: Path, image_type: ImageType, config: ConverterConfig
    ) -> tuple[Dimension, Image.Image]:
        """返回源图原生尺寸与用于缩放的母版图像。"""

        if image_type.is_vector:
            native = read_svg_dimension(source_path)
            hq = compute_hq_dimension(native, config.scale_mode, config.scale, config.rounding)
            LOGGER.debug("SVG %s 以 %s 栅格化母版", source_path.name, hq)
            return native, rasterize_svg(source_path, hq)

        master = load_image(source_path)
        return Dimension(master.width, master.height), master

    def _write_compressions(
        self,
        image: Image.Image,
        base_path: Path,
        compressions: list[str],
        config: ConverterConfig,
        log: ConversionLog,
    ) -> None:
        written = 0
        for compression in compressions:
            decision = decide_destination(
                base_path, compression, skip_existing=config.skip_existing, dry_run=config.dry_run
            )
            if decision.action in {"skip", "dry-run"}:
                log.add(f"{decision.action}: {decision.destination} ({decision.note})")
                continue

            size_bytes = save_image(image, decision.destination, compression, config.compression_quality)
            log.produced.append(ProducedFile(path=decision.destination, size_bytes=size_bytes))
            log.add(f"compressed to disk: {decision.destination} ({size_bytes / 1024:.2f}kB)")
            written += 1

            post = run_post_processors(decision.destination, compression, config)
            for extra in post.produced:
                log.produced.append(extra)
                log.add(f"post-processed: {extra.path} ({extra.size_bytes / 1024:.2f}kB)")
            for warning in post.warnings:
                log.add(f"warning: {warning}")

        if not written:
            log.add("files skipped")
