"""图片解码与 SVG 栅格化实现。"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from density_converter.core.exceptions import ImageLoadingError
from density_converter.core.models import Dimension

LOGGER = logging.getLogger(__name__)

_CAIROSVG: Any = None


def load_image(path: Path) -> Image.Image:
    """加载单张位图并执行 EXIF 旋转与模式归一化。

    带透明信息的图片统一为 RGBA，其余统一为 RGB。
    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            return _normalize_mode(img)
    except (UnidentifiedImageError, OSError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path}") from exc


def read_svg_dimension(path: Path) -> Dimension:
    """以 SVG 自身声明的尺寸栅格化一次，得到原生像素尺寸。"""

    with rasterize_svg(path) as raster:
        return Dimension(raster.width, raster.height)


def rasterize_svg(path: Path, target: Optional[Dimension] = None) -> Image.Image:
    """将 SVG 栅格化为 RGBA 图像，target 为空时使用原生尺寸。"""

    cairosvg = _get_cairosvg()
    params: dict[str, Any] = {"url": str(path)}
    if target is not None:
        params.update(output_width=target.width, output_height=target.height)

    try:
        png_bytes = cairosvg.svg2png(**params)
    except Exception as exc:  # noqa: BLE001
        LOGGER.debug("SVG 栅格化失败 %s: %s", path, exc)
        raise ImageLoadingError(f"无法栅格化 SVG: {path}") from exc

    with Image.open(io.BytesIO(png_bytes)) as img:
        img.load()
        return img.convert("RGBA")


def _get_cairosvg() -> Any:
    global _CAIROSVG

    if _CAIROSVG is None:
        try:
            import cairosvg  # type: ignore[import-untyped]
        except (ImportError, OSError) as exc:
            raise ImageLoadingError("未安装 cairosvg 或缺少 cairo 运行库，无法处理 SVG") from exc
        _CAIROSVG = cairosvg
    return _CAIROSVG


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in {"RGBA", "LA", "PA"} or (img.mode == "P" and "transparency" in img.info):
        return img.convert("RGBA")

    if img.mode == "RGB":
        return img.copy()

    return img.convert("RGB")
