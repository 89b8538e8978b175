"""转换任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from density_converter.core.exceptions import InvalidConfigurationError
from density_converter.core.rounding import RoundingStrategy


class ScaleMode(str, Enum):
    """缩放值的解释方式。"""

    FACTOR = "factor"
    DP_WIDTH = "dp_width"
    DP_HEIGHT = "dp_height"


class Platform(str, Enum):
    """目标平台，ALL 展开为全部平台。"""

    ALL = "all"
    ANDROID = "android"
    IOS = "ios"
    WEB = "web"
    WINDOWS = "windows"

    def expand(self) -> tuple["Platform", ...]:
        """返回该选项实际包含的具体平台。"""

        if self is Platform.ALL:
            return (Platform.ANDROID, Platform.IOS, Platform.WEB, Platform.WINDOWS)
        return (self,)


class CompressionMode(str, Enum):
    """输出压缩格式选择。"""

    SAME_AS_INPUT = "same_as_input"
    SAME_AS_INPUT_STRICT = "same_as_input_strict"
    AS_PNG = "png"
    AS_JPG = "jpg"
    AS_GIF = "gif"
    AS_BMP = "bmp"
    AS_JPG_AND_PNG = "jpg_and_png"


DEFAULT_SCALE = 3.0
DEFAULT_COMPRESSION_QUALITY = 0.9
DEFAULT_WORKER_COUNT = 4
MIN_WORKER_COUNT = 1
MAX_WORKER_COUNT = 8
MAX_FACTOR_SCALE = 100.0
MAX_DP_SCALE = 9999.0


@dataclass(frozen=True, slots=True)
class ConverterConfig:
    """单次批量转换任务的全部配置，创建后不再修改。"""

    source: Path
    destination: Path
    scale: float = DEFAULT_SCALE
    scale_mode: ScaleMode = ScaleMode.FACTOR
    platform: Platform = Platform.ALL
    compression_mode: CompressionMode = CompressionMode.SAME_AS_INPUT
    compression_quality: float = DEFAULT_COMPRESSION_QUALITY
    worker_count: int = DEFAULT_WORKER_COUNT
    skip_existing: bool = False
    skip_upscaling: bool = False
    verbose_log: bool = False
    include_low_density_android: bool = False
    halt_on_error: bool = False
    use_mipmap_folders: bool = False
    enable_png_crush: bool = False
    enable_webp_conversion: bool = False
    enable_anti_aliasing: bool = False
    dry_run: bool = False
    rounding: RoundingStrategy = RoundingStrategy.ROUND_HALF_UP

    @property
    def platforms(self) -> tuple[Platform, ...]:
        return self.platform.expand()

    @property
    def multiple_platforms(self) -> bool:
        """同时输出多个平台时，每个平台使用独立子目录。"""

        return len(self.platforms) > 1


def build_config(
    source: Path,
    scale: float = DEFAULT_SCALE,
    *,
    destination: Optional[Path] = None,
    **options: object,
) -> ConverterConfig:
    """补全默认值并校验，返回不可变配置。

    未指定输出目录时，目录源使用自身，单文件源使用其所在目录。
    """

    source = Path(source)
    if not source.exists():
        raise InvalidConfigurationError(f"源文件或目录不存在: {source}")

    if destination is None:
        destination = source if source.is_dir() else source.parent

    try:
        config = ConverterConfig(source=source, destination=Path(destination), scale=float(scale), **options)
    except TypeError as exc:
        raise InvalidConfigurationError(f"未知的配置项: {exc}") from exc

    validate_config(config)
    return config


def validate_config(config: ConverterConfig) -> None:
    """校验配置取值范围，不合法时抛出 InvalidConfigurationError。"""

    if not config.source.exists():
        raise InvalidConfigurationError(f"源文件或目录不存在: {config.source}")

    if not 0.0 <= config.compression_quality <= 1.0:
        raise InvalidConfigurationError(
            f"压缩质量 {config.compression_quality} 不合法，必须位于 0 与 1.0 之间（含边界）"
        )

    if not MIN_WORKER_COUNT <= config.worker_count <= MAX_WORKER_COUNT:
        raise InvalidConfigurationError(
            f"线程数 {config.worker_count} 不合法，必须位于 {MIN_WORKER_COUNT} 与 {MAX_WORKER_COUNT} 之间（含边界）"
        )

    if config.scale_mode is ScaleMode.FACTOR:
        if not 0.0 < config.scale < MAX_FACTOR_SCALE:
            raise InvalidConfigurationError(
                f"缩放倍数 {config.scale} 不合法，必须位于 0 与 {MAX_FACTOR_SCALE:g} 之间（不含边界）"
            )
    elif not 0.0 < config.scale < MAX_DP_SCALE:
        raise InvalidConfigurationError(
            f"dp 值 {config.scale} 不合法，必须位于 0 与 {MAX_DP_SCALE:g}dp 之间（不含边界）"
        )
