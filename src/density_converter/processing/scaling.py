"""密度档位尺寸计算。

三种缩放模式先求出 1x 基准尺寸，再乘以各档位的倍数并取整：

* FACTOR: 源图代表 ``scale`` 倍档位，基准 = 源尺寸 / scale（不取整）。
* DP_WIDTH: ``scale`` 为 1x 档位的宽度（dp），高度按源图比例换算，基准先取整。
* DP_HEIGHT: 与 DP_WIDTH 对称，以高度为准。

开启 skip_upscaling 时，会超出源图原生分辨率的档位被直接省略，不产生零尺寸条目。
"""

from __future__ import annotations

import logging
from typing import Iterable

from density_converter.core.config import ScaleMode
from density_converter.core.models import BucketMap, DensityDescriptor, Dimension
from density_converter.core.rounding import RoundingStrategy, round_value

LOGGER = logging.getLogger(__name__)

SVG_UPSCALE_FACTOR = 4.0


def compute_buckets(
    source: Dimension,
    scale_mode: ScaleMode,
    scale: float,
    densities: Iterable[DensityDescriptor],
    skip_upscaling: bool = False,
    rounding: RoundingStrategy = RoundingStrategy.ROUND_HALF_UP,
) -> BucketMap:
    """计算每个密度档位的目标像素尺寸，按倍数升序返回。"""

    ordered = sorted(set(densities))

    if scale_mode is ScaleMode.DP_WIDTH:
        buckets = _dp_width_buckets(source, scale, ordered, skip_upscaling, rounding)
    elif scale_mode is ScaleMode.DP_HEIGHT:
        buckets = _dp_height_buckets(source, scale, ordered, skip_upscaling, rounding)
    else:
        buckets = _factor_buckets(source, scale, ordered, skip_upscaling, rounding)

    LOGGER.debug(
        "源尺寸 %s (%s=%s) -> %s",
        source,
        scale_mode.value,
        scale,
        ", ".join(f"{density.name}:{dimension}" for density, dimension in buckets.items()),
    )
    return buckets


def _factor_buckets(
    source: Dimension,
    scale: float,
    densities: list[DensityDescriptor],
    skip_upscaling: bool,
    rounding: RoundingStrategy,
) -> BucketMap:
    base_width = source.width / scale
    base_height = source.height / scale

    buckets: BucketMap = {}
    for density in densities:
        if skip_upscaling and scale < density.scale:
            continue
        buckets[density] = Dimension(
            round_value(base_width * density.scale, rounding),
            round_value(base_height * density.scale, rounding),
        )
    return buckets


def _dp_width_buckets(
    source: Dimension,
    scale: float,
    densities: list[DensityDescriptor],
    skip_upscaling: bool,
    rounding: RoundingStrategy,
) -> BucketMap:
    factor = scale / source.width
    base_width = round_value(scale, rounding)
    base_height = round_value(factor * source.height, rounding)

    buckets: BucketMap = {}
    for density in densities:
        width = round_value(base_width * density.scale, rounding)
        if skip_upscaling and width > source.width:
            continue
        buckets[density] = Dimension(width, round_value(base_height * density.scale, rounding))
    return buckets


def _dp_height_buckets(
    source: Dimension,
    scale: float,
    densities: list[DensityDescriptor],
    skip_upscaling: bool,
    rounding: RoundingStrategy,
) -> BucketMap:
    factor = scale / source.height
    base_width = round_value(factor * source.width, rounding)
    base_height = round_value(scale, rounding)

    buckets: BucketMap = {}
    for density in densities:
        height = round_value(base_height * density.scale, rounding)
        if skip_upscaling and height > source.height:
            continue
        buckets[density] = Dimension(round_value(base_width * density.scale, rounding), height)
    return buckets


def compute_hq_dimension(
    source: Dimension,
    scale_mode: ScaleMode,
    scale: float,
    rounding: RoundingStrategy = RoundingStrategy.ROUND_HALF_UP,
) -> Dimension:
    """矢量图栅格化使用的母版尺寸。

    母版按最大输出的 SVG_UPSCALE_FACTOR 倍栅格化，避免大倍率缩小时出现锯齿；
    若请求的倍率已超过该系数则直接使用原生尺寸。
    """

    # TODO: 三种模式的阈值比较并不对称（FACTOR 放大、DP 模式实为缩小），需确认是否统一规则。
    if scale_mode is ScaleMode.FACTOR and scale < SVG_UPSCALE_FACTOR:
        factor = SVG_UPSCALE_FACTOR / scale
    elif scale_mode is ScaleMode.DP_WIDTH and scale * SVG_UPSCALE_FACTOR < source.width:
        factor = scale / source.width * SVG_UPSCALE_FACTOR
    elif scale_mode is ScaleMode.DP_HEIGHT and scale * SVG_UPSCALE_FACTOR < source.height:
        factor = scale / source.height * SVG_UPSCALE_FACTOR
    else:
        return source

    return Dimension(round_value(factor * source.width, rounding), round_value(factor * source.height, rounding))
