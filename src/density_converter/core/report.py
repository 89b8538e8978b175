"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path

from density_converter.core.models import BatchReport

HEADER = ["source_path", "platform", "output_path", "size_bytes", "status", "message"]


def write_csv_report(report: BatchReport, report_path: Path) -> Path:
    """将批处理结果写入 CSV 报告，每个输出文件或失败任务一行。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for result in report.results:
            if result.produced:
                for produced in result.produced:
                    writer.writerow(
                        [
                            str(result.source_path),
                            result.platform.value,
                            str(produced.path),
                            produced.size_bytes,
                            result.status,
                            "",
                        ]
                    )
                continue

            writer.writerow(
                [
                    str(result.source_path),
                    result.platform.value,
                    "",
                    "",
                    result.status,
                    result.message or "",
                ]
            )
    return report_path
