"""像素尺寸取整策略。"""

from __future__ import annotations

import math
from enum import Enum


class RoundingStrategy(str, Enum):
    """实数尺寸转换为像素数时使用的取整规则。"""

    ROUND_HALF_UP = "round_half_up"
    CEIL = "ceil"
    FLOOR = "floor"


def round_value(raw: float, strategy: RoundingStrategy = RoundingStrategy.ROUND_HALF_UP) -> int:
    """按给定策略将实数取整为像素数。

    ROUND_HALF_UP 对 .5 向正无穷方向进位，即 ``floor(raw + 0.5)``，
    与 Python 内置 ``round`` 的银行家舍入不同。
    """

    if strategy is RoundingStrategy.CEIL:
        return math.ceil(raw)
    if strategy is RoundingStrategy.FLOOR:
        return math.floor(raw)
    return math.floor(raw + 0.5)
