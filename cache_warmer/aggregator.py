# File: cache_warmer/aggregator.py
"""cache_warmer.aggregator: Подсчёт результатов прогрева и итоговая сводка."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass

from cache_warmer.warmer.models import FetchOutcome


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Итог запуска: сколько URL найдено, обработано, успешно и с ошибкой."""

    total_resolved: int
    total_processed: int
    success_count: int
    failed_count: int

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление сводки."""
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)


class ResultAggregator:
    """Потокобезопасный счётчик исходов FetchOutcome."""

    def __init__(self, total_resolved: int = 0) -> None:
        self.total_resolved = total_resolved
        self._lock = threading.Lock()
        self._processed = 0
        self._success = 0
        self._failed = 0

    def record(self, outcome: FetchOutcome) -> None:
        """Учитывает один исход: статус 200 без ошибки - успех, всё остальное - отказ."""
        with self._lock:
            self._processed += 1
            if outcome.ok:
                self._success += 1
            else:
                self._failed += 1

    def finalize(self) -> RunSummary:
        """Возвращает неизменяемую сводку на текущий момент."""
        with self._lock:
            return RunSummary(
                total_resolved=self.total_resolved,
                total_processed=self._processed,
                success_count=self._success,
                failed_count=self._failed,
            )


__all__ = ["RunSummary", "ResultAggregator"]
