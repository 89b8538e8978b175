"""Android / iOS / Web / Windows 的密度档位与目录命名规则。"""

from __future__ import annotations

import json
from pathlib import Path

from density_converter.core.config import ConverterConfig, Platform
from density_converter.core.exceptions import ImageWriteError
from density_converter.core.models import BucketMap, DensityDescriptor, Dimension
from density_converter.core.output_manager import COMPRESSION_FORMATS, PNG
from density_converter.processing.converter import PlatformConverter


ANDROID_LOW_DENSITIES = (
    DensityDescriptor(0.75, "ldpi", "drawable-ldpi"),
    DensityDescriptor(1.33, "tvdpi", "drawable-tvdpi"),
)
ANDROID_DENSITIES = (
    DensityDescriptor(1.0, "mdpi", "drawable-mdpi"),
    DensityDescriptor(1.5, "hdpi", "drawable-hdpi"),
    DensityDescriptor(2.0, "xhdpi", "drawable-xhdpi"),
    DensityDescriptor(3.0, "xxhdpi", "drawable-xxhdpi"),
    DensityDescriptor(4.0, "xxxhdpi", "drawable-xxxhdpi"),
)
IOS_DENSITIES = (
    DensityDescriptor(1.0, "1x", ""),
    DensityDescriptor(2.0, "2x", "@2x"),
    DensityDescriptor(3.0, "3x", "@3x"),
)
WEB_DENSITIES = (
    DensityDescriptor(1.0, "1x", "-1x"),
    DensityDescriptor(2.0, "2x", "-2x"),
)
WINDOWS_DENSITIES = (
    DensityDescriptor(1.0, "100", "scale-100"),
    DensityDescriptor(1.25, "125", "scale-125"),
    DensityDescriptor(1.5, "150", "scale-150"),
    DensityDescriptor(2.0, "200", "scale-200"),
    DensityDescriptor(4.0, "400", "scale-400"),
)


def _platform_root(destination: Path, sub_folder: str, config: ConverterConfig) -> Path:
    """同时输出多个平台时嵌套到平台子目录。"""

    if config.multiple_platforms:
        return destination / sub_folder
    return destination


class AndroidConverter(PlatformConverter):
    """生成 drawable-<bucket>（或 mipmap-<bucket>）资源目录。"""

    platform = Platform.ANDROID
    name = "android-converter"

    def densities(self, config: ConverterConfig) -> list[DensityDescriptor]:
        if config.include_low_density_android:
            return [*ANDROID_LOW_DENSITIES, *ANDROID_DENSITIES]
        return list(ANDROID_DENSITIES)

    def root_output_folder(self, destination: Path, base_name: str, config: ConverterConfig) -> Path:
        return _platform_root(destination, "android", config)

    def output_folder_for(
        self, root: Path, density: DensityDescriptor, dimension: Dimension, config: ConverterConfig
    ) -> Path:
        folder_name = density.token
        if config.use_mipmap_folders:
            folder_name = folder_name.replace("drawable", "mipmap")
        return root / folder_name

    def output_base_name(
        self, density: DensityDescriptor, dimension: Dimension, base_name: str, config: ConverterConfig
    ) -> str:
        return base_name


class WebConverter(PlatformConverter):
    """生成 css image-set 风格的 img/<name>-1x、-2x 文件。"""

    platform = Platform.WEB
    name = "web-converter"

    def densities(self, config: ConverterConfig) -> list[DensityDescriptor]:
        return list(WEB_DENSITIES)

    def root_output_folder(self, destination: Path, base_name: str, config: ConverterConfig) -> Path:
        return _platform_root(destination, "web", config) / "img"

    def output_folder_for(
        self, root: Path, density: DensityDescriptor, dimension: Dimension, config: ConverterConfig
    ) -> Path:
        return root

    def output_base_name(
        self, density: DensityDescriptor, dimension: Dimension, base_name: str, config: ConverterConfig
    ) -> str:
        return base_name + density.token


class IosConverter(PlatformConverter):
    """生成 <name>.imageset 资源目录及其 Contents.json。"""

    platform = Platform.IOS
    name = "ios-converter"

    def densities(self, config: ConverterConfig) -> list[DensityDescriptor]:
        return list(IOS_DENSITIES)

    def root_output_folder(self, destination: Path, base_name: str, config: ConverterConfig) -> Path:
        return _platform_root(destination, "ios", config) / f"{base_name}.imageset"

    def output_folder_for(
        self, root: Path, density: DensityDescriptor, dimension: Dimension, config: ConverterConfig
    ) -> Path:
        return root

    def output_base_name(
        self, density: DensityDescriptor, dimension: Dimension, base_name: str, config: ConverterConfig
    ) -> str:
        return base_name + density.token

    def on_pre_execute(
        self, root: Path, base_name: str, buckets: BucketMap, compressions: list[str], config: ConverterConfig
    ) -> None:
        """写出 asset catalog 所需的 Contents.json。

        同时输出多种格式时引用 PNG 文件；开启 skip_existing 且文件已存在时保持原样。
        """

        if config.dry_run:
            return

        contents_path = root / "Contents.json"
        if config.skip_existing and contents_path.exists():
            return

        compression = PNG if PNG in compressions else compressions[0]
        _, extension = COMPRESSION_FORMATS[compression]
        contents = {
            "images": [
                {
                    "idiom": "universal",
                    "filename": f"{self.output_base_name(density, dimension, base_name, config)}{extension}",
                    "scale": density.name,
                }
                for density, dimension in buckets.items()
            ],
            "info": {"version": 1, "author": "density-converter"},
        }

        try:
            contents_path.write_text(json.dumps(contents, indent=2), encoding="utf-8")
        except OSError as exc:
            raise ImageWriteError(f"写入文件失败: {contents_path}") from exc


class WindowsConverter(PlatformConverter):
    """生成 Assets/<name>.scale-NNN 文件。"""

    platform = Platform.WINDOWS
    name = "windows-converter"

    def densities(self, config: ConverterConfig) -> list[DensityDescriptor]:
        return list(WINDOWS_DENSITIES)

    def root_output_folder(self, destination: Path, base_name: str, config: ConverterConfig) -> Path:
        return _platform_root(destination, "windows", config)

    def output_folder_for(
        self, root: Path, density: DensityDescriptor, dimension: Dimension, config: ConverterConfig
    ) -> Path:
        return root / "Assets"

    def output_base_name(
        self, density: DensityDescriptor, dimension: Dimension, base_name: str, config: ConverterConfig
    ) -> str:
        return f"{base_name}.{density.token}"


CONVERTERS: dict[Platform, PlatformConverter] = {
    converter.platform: converter
    for converter in (AndroidConverter(), IosConverter(), WebConverter(), WindowsConverter())
}


def converters_for(config: ConverterConfig) -> list[PlatformConverter]:
    """返回配置中启用的平台转换器。"""

    return [CONVERTERS[platform] for platform in config.platforms]
