"""输出格式、目录创建与图像写入模块。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image

from density_converter.core.config import CompressionMode
from density_converter.core.exceptions import FolderCreationError, ImageLoadingError, ImageWriteError

LOGGER = logging.getLogger(__name__)

PNG = "png"
JPG = "jpg"
GIF = "gif"
BMP = "bmp"
TIFF = "tiff"

# 压缩类型 -> (Pillow 格式名, 文件扩展名)
COMPRESSION_FORMATS = {
    PNG: ("PNG", ".png"),
    JPG: ("JPEG", ".jpg"),
    GIF: ("GIF", ".gif"),
    BMP: ("BMP", ".bmp"),
    TIFF: ("TIFF", ".tif"),
}

WHITE = (255, 255, 255)


@dataclass(frozen=True, slots=True)
class ImageType:
    """可读取的源图片类型及其默认输出压缩。"""

    name: str
    extensions: tuple[str, ...]
    compat_compression: str
    strict_compression: str

    @property
    def is_vector(self) -> bool:
        return self.name == "svg"


IMAGE_TYPES = (
    ImageType("jpg", (".jpg", ".jpeg"), JPG, JPG),
    ImageType("png", (".png",), PNG, PNG),
    ImageType("svg", (".svg",), PNG, PNG),
    ImageType("tiff", (".tif", ".tiff"), PNG, TIFF),
    ImageType("psd", (".psd",), PNG, PNG),
    ImageType("gif", (".gif",), PNG, GIF),
    ImageType("bmp", (".bmp",), PNG, BMP),
)

SUPPORTED_EXTENSIONS = frozenset(ext for image_type in IMAGE_TYPES for ext in image_type.extensions)


def image_type_for(path: Path) -> ImageType:
    """根据扩展名识别图片类型。"""

    suffix = path.suffix.lower()
    for image_type in IMAGE_TYPES:
        if suffix in image_type.extensions:
            return image_type
    raise ImageLoadingError(f"未知的文件扩展名 {suffix or '(无)'}: {path}")


def compressions_for(mode: CompressionMode, image_type: ImageType) -> list[str]:
    """返回该类型图片在给定压缩模式下需要输出的全部格式。"""

    if mode is CompressionMode.AS_GIF:
        return [GIF]
    if mode is CompressionMode.AS_PNG:
        return [PNG]
    if mode is CompressionMode.AS_JPG:
        return [JPG]
    if mode is CompressionMode.AS_JPG_AND_PNG:
        return [JPG, PNG]
    if mode is CompressionMode.AS_BMP:
        return [BMP]
    if mode is CompressionMode.SAME_AS_INPUT_STRICT:
        return [image_type.strict_compression]
    return [image_type.compat_compression]


def create_and_check_folder(folder: Path, dry_run: bool = False) -> Path:
    """创建目录（已存在不视为错误），失败时抛出 FolderCreationError。"""

    if dry_run:
        return folder

    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FolderCreationError(f"无法创建目录: {folder}") from exc

    if not folder.is_dir():
        raise FolderCreationError(f"无法创建目录: {folder}")
    return folder


@dataclass(slots=True)
class DestinationDecision:
    """封装输出文件决策。"""

    destination: Path
    action: str
    note: Optional[str] = None


def decide_destination(base_path: Path, compression: str, *, skip_existing: bool, dry_run: bool) -> DestinationDecision:
    """为不含扩展名的基础路径确定最终输出文件与动作。"""

    _, extension = COMPRESSION_FORMATS[compression]
    destination = base_path.with_name(base_path.name + extension)

    if dry_run:
        return DestinationDecision(destination=destination, action="dry-run", note="dry-run，未写入")

    if not destination.exists():
        return DestinationDecision(destination=destination, action="write")

    if skip_existing:
        return DestinationDecision(destination=destination, action="skip", note=f"目标已存在: {destination.name}")
    return DestinationDecision(destination=destination, action="overwrite", note=f"覆盖已存在文件: {destination.name}")


def save_image(image: Image.Image, destination: Path, compression: str, quality: float) -> int:
    """按压缩类型将 PIL Image 写入磁盘，返回文件字节数。"""

    image_format, _ = COMPRESSION_FORMATS[compression]
    save_params: dict = {}
    image_to_save = image

    if compression == JPG:
        save_params.update(quality=_jpeg_quality(quality), optimize=True)
        image_to_save = _flatten_alpha(image)
    elif compression == BMP:
        image_to_save = _flatten_alpha(image)
    elif compression == PNG:
        save_params["optimize"] = True

    try:
        image_to_save.save(destination, format=image_format, **save_params)
    except OSError as exc:
        raise ImageWriteError(f"写入文件失败: {destination}") from exc
    finally:
        if image_to_save is not image:
            image_to_save.close()

    return destination.stat().st_size


def _jpeg_quality(quality: float) -> int:
    return max(1, min(100, int(round(quality * 100))))


def _flatten_alpha(image: Image.Image) -> Image.Image:
    """将带透明通道的图片合成到白色背景上，生成 RGB 图像。"""

    if image.mode in {"RGBA", "LA"}:
        background = Image.new("RGB", image.size, WHITE)
        background.paste(image.convert("RGBA"), mask=image.getchannel("A"))
        return background

    if image.mode != "RGB":
        return image.convert("RGB")

    return image
