"""缩放实现：默认使用 Pillow LANCZOS，开启抗锯齿时使用 OpenCV 区域插值。"""

from __future__ import annotations

import cv2
import numpy as np
from PIL import Image

from density_converter.core.models import Dimension

_RESAMPLING = getattr(Image, "Resampling", Image)


def resize_image(image: Image.Image, target: Dimension, anti_alias: bool = False) -> Image.Image:
    """将图片缩放到目标尺寸，返回新的 Image 对象。"""

    size = (max(1, target.width), max(1, target.height))
    if image.size == size:
        return image.copy()

    if not anti_alias:
        return image.resize(size, _RESAMPLING.LANCZOS)

    downscale = size[0] < image.width or size[1] < image.height
    interpolation = cv2.INTER_AREA if downscale else cv2.INTER_CUBIC

    array = np.asarray(image)
    resized = cv2.resize(array, size, interpolation=interpolation)
    return Image.fromarray(np.ascontiguousarray(resized))
