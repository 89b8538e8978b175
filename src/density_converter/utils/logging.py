"""日志初始化。"""

from __future__ import annotations

import logging

# 这些库在 DEBUG 级别会逐块输出解码细节
NOISY_LOGGERS = ("PIL", "cairosvg")


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置，日志中带上工作线程名称。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
