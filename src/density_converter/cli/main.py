"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from density_converter.core.config import (
    DEFAULT_COMPRESSION_QUALITY,
    DEFAULT_SCALE,
    DEFAULT_WORKER_COUNT,
    CompressionMode,
    Platform,
    ScaleMode,
    build_config,
)
from density_converter.core.exceptions import InvalidConfigurationError
from density_converter.core.progress import ProgressUpdate
from density_converter.core.report import write_csv_report
from density_converter.core.rounding import RoundingStrategy
from density_converter.processing.pipeline import execute
from density_converter.utils.logging import setup_logging

app = typer.Typer(help="按平台密度档位批量生成多分辨率图片资源。")


def _build_progress_callback(progress: Progress, verbose: bool):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("转换图片", total=update.total)
        progress.update(task_id, completed=update.completed)
        if verbose and update.message:
            progress.log(update.message)

    return callback


@app.command("run")
def run_cli(  # noqa: PLR0913
    source: Path = typer.Argument(..., help="源图片文件或目录"),
    destination: Optional[Path] = typer.Option(None, "--output", "-o", help="输出目录，默认与源相同"),
    scale: float = typer.Option(DEFAULT_SCALE, "--scale", "-s", help="源图倍数（factor）或 1x 档位的 dp 值"),
    scale_mode: ScaleMode = typer.Option(ScaleMode.FACTOR, "--scale-mode", help="缩放值的解释方式"),
    platform: Platform = typer.Option(Platform.ALL, "--platform", "-p", help="目标平台"),
    compression: CompressionMode = typer.Option(
        CompressionMode.SAME_AS_INPUT, "--compression", help="输出压缩格式"
    ),
    quality: float = typer.Option(DEFAULT_COMPRESSION_QUALITY, "--quality", help="压缩质量 0.0~1.0"),
    workers: int = typer.Option(DEFAULT_WORKER_COUNT, "--workers", "-w", help="并发线程数量 1~8"),
    rounding: RoundingStrategy = typer.Option(RoundingStrategy.ROUND_HALF_UP, "--rounding", help="像素取整策略"),
    skip_existing: bool = typer.Option(False, "--skip-existing", help="目标文件已存在时跳过"),
    skip_upscaling: bool = typer.Option(False, "--skip-upscaling", help="不生成需要放大的档位"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出完整转换日志"),
    android_low_density: bool = typer.Option(False, "--android-ldpi-tvdpi", help="额外生成 ldpi 与 tvdpi"),
    halt_on_error: bool = typer.Option(False, "--halt-on-error", help="任一任务失败后停止调度剩余任务"),
    mipmap: bool = typer.Option(False, "--android-mipmap", help="Android 使用 mipmap 目录代替 drawable"),
    png_crush: bool = typer.Option(False, "--pngcrush", help="使用 pngcrush 无损压缩 PNG 输出"),
    webp: bool = typer.Option(False, "--webp", help="使用 cwebp 额外生成 WebP 文件"),
    anti_aliasing: bool = typer.Option(False, "--anti-aliasing", help="缩放时启用抗锯齿"),
    dry_run: bool = typer.Option(False, "--dry-run", help="只计算与记录，不写入任何文件"),
    report_path: Optional[Path] = typer.Option(None, "--report", help="写出 CSV 报告的路径"),
) -> None:
    """执行批量转换。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = build_config(
            source.expanduser().resolve(),
            scale,
            destination=destination.expanduser().resolve() if destination else None,
            scale_mode=scale_mode,
            platform=platform,
            compression_mode=compression,
            compression_quality=quality,
            worker_count=workers,
            rounding=rounding,
            skip_existing=skip_existing,
            skip_upscaling=skip_upscaling,
            verbose_log=verbose,
            include_low_density_android=android_low_density,
            halt_on_error=halt_on_error,
            use_mipmap_folders=mipmap,
            enable_png_crush=png_crush,
            enable_webp_conversion=webp,
            enable_anti_aliasing=anti_aliasing,
            dry_run=dry_run,
        )
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
    )

    with progress:
        report = execute(config, progress_callback=_build_progress_callback(progress, verbose))

    if config.verbose_log and report.log:
        typer.echo(report.log)

    for failure in report.errors:
        typer.echo(f"失败：{failure}", err=True)

    typer.echo(
        f"转换完成：完成任务 {report.finished_jobs}/{report.total_jobs}，"
        f"错误 {len(report.errors)} 个，耗时 {report.elapsed_ms}ms"
        + ("（因错误提前停止）" if report.halted else "")
    )

    if report_path is not None:
        write_csv_report(report, report_path.expanduser().resolve())
        typer.echo(f"报告文件：{report_path}")

    if report.errors:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
