"""SVG 源图的栅格化与档位尺寸测试（需要 cairosvg 与 cairo 运行库）。"""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from density_converter.core.config import Platform, build_config
from density_converter.processing.converter import ConversionLog
from density_converter.processing.image_loader import read_svg_dimension
from density_converter.processing.platforms import WebConverter

SVG_TEXT = """<svg xmlns="http://www.w3.org/2000/svg" width="40" height="20" viewBox="0 0 40 20">
<rect x="0" y="0" width="40" height="20" fill="#3366ff"/>
</svg>
"""


def _require_cairosvg() -> None:
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        pytest.skip("cairosvg 不可用")


def _write_svg(folder: Path) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "logo.svg"
    path.write_text(SVG_TEXT, encoding="utf-8")
    return path


def test_read_svg_dimension(tmp_path: Path) -> None:
    _require_cairosvg()
    source = _write_svg(tmp_path / "input")

    dimension = read_svg_dimension(source)

    assert (dimension.width, dimension.height) == (40, 20)


def test_svg_buckets_follow_native_dimension(tmp_path: Path) -> None:
    _require_cairosvg()
    source = _write_svg(tmp_path / "input")
    output = tmp_path / "output"
    config = build_config(source, 1, destination=output, platform=Platform.WEB)
    log = ConversionLog()

    WebConverter().convert(source, config, log)

    with Image.open(output / "img" / "logo-1x.png") as img:
        assert img.size == (40, 20)
    with Image.open(output / "img" / "logo-2x.png") as img:
        assert img.size == (80, 40)
    assert log.lines[0].startswith("web-converter: logo 40x20 (1x)")
