"""批处理进度快照。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    """每个任务结束后发出一次，completed 单调递增。"""

    total: int
    completed: int
    finished_count: int = 0
    halted: bool = False
    message: Optional[str] = None

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return min(1.0, self.completed / self.total)
