from dataclasses import dataclass, fields
from time import monotonic
from typing import Dict

from src.feed.parser import ReaderStats


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Снимок метрик пайплайна.

    :param ts: Timestamp monotonic (секунды) на момент снимка.
    :param items_seen: Сколько <item> закрыто в документе.
    :param records_parsed: Сколько валидных товаров отдал ридер.
    :param skipped_records: Сколько <item> пропущено из-за отсутствия полей.
    :param records_delivered: Сколько товаров доставлено в sink (в батчах).
    :param payloads_delivered: Сколько батчей доставлено в sink.
    :param bytes_delivered: Суммарный размер доставленных payload в байтах.
    :param oversized_records: Сколько товаров не поместилось ни в один батч.
    :param sink_failures: Сколько раз sink отклонил батч.
    """

    ts: float
    items_seen: int
    records_parsed: int
    skipped_records: int
    records_delivered: int
    payloads_delivered: int
    bytes_delivered: int
    oversized_records: int
    sink_failures: int

    def as_dict(self) -> Dict[str, int | float]:
        """
        Преобразует снимок метрик в словарь.

        :return: Словарь со значениями метрик и timestamp.
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}


class PipelineMetrics:
    """
    Счётчики одного запуска пайплайна.

    Пайплайн однопоточный, поэтому счётчики это обычные int без блокировок.
    Статистика парсинга (items_seen / skipped_records) переносится
    из ReaderStats через update_reader().
    """

    def __init__(self) -> None:
        self.items_seen = 0
        self.records_parsed = 0
        self.skipped_records = 0

        self.records_delivered = 0
        self.payloads_delivered = 0
        self.bytes_delivered = 0

        self.oversized_records = 0
        self.sink_failures = 0

    def inc(self, name: str, delta: int = 1) -> None:
        """
        Увеличивает указанный счётчик.

        :param name: Имя счётчика (атрибута).
        :param delta: На сколько увеличить.
        :return: None.
        """
        if delta == 0:
            return
        setattr(self, name, getattr(self, name) + int(delta))

    def update_reader(self, stats: ReaderStats) -> None:
        """
        Переносит текущие счётчики ридера.

        :param stats: ReaderStats, который накапливает iter_products.
        :return: None.
        """
        self.items_seen = stats.items_seen
        self.records_parsed = stats.records_emitted
        self.skipped_records = stats.skipped_records

    def snapshot(self) -> MetricsSnapshot:
        """
        Делает снимок всех счётчиков.

        :return: MetricsSnapshot.
        """
        return MetricsSnapshot(
            ts=monotonic(),
            items_seen=self.items_seen,
            records_parsed=self.records_parsed,
            skipped_records=self.skipped_records,
            records_delivered=self.records_delivered,
            payloads_delivered=self.payloads_delivered,
            bytes_delivered=self.bytes_delivered,
            oversized_records=self.oversized_records,
            sink_failures=self.sink_failures,
        )
