import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.feed.parser import ProductRecord, ReaderStats
from src.feed.reader import DEFAULT_CHUNK_BYTES, iter_products
from src.pipeline.batching import DEFAULT_MAX_BATCH_BYTES, Batch, BatchAccumulator
from src.pipeline.metrics import MetricsSnapshot, PipelineMetrics
from src.pipeline.sink import PayloadSink
from src.settings.logging import logger
from src.utils.errors import OversizedRecordError, SinkFailureError


@dataclass(frozen=True)
class PipelineConfig:
    """
    Конфиг пайплайна.

    :param feed_path: Путь к XML-фиду.
    :param max_batch_bytes: Лимит размера payload (payload всегда строго меньше).
    :param item_tag_name: Локальное имя тега товара.
    :param huge_tree: lxml huge_tree.
    :param read_chunk_bytes: Размер куска чтения файла.
    :param skip_oversized_records: Пропускать товары, не влезающие в батч,
    вместо остановки запуска.
    :param tolerate_sink_failures: Продолжать работу после отказа sink.
    :param log_interval_sec: Интервал логирования прогресса.
    """

    feed_path: Path
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES
    item_tag_name: str = "item"
    huge_tree: bool = True
    read_chunk_bytes: int = DEFAULT_CHUNK_BYTES
    skip_oversized_records: bool = False
    tolerate_sink_failures: bool = False
    log_interval_sec: float = 5.0


def run_pipeline(
    cfg: PipelineConfig,
    sink: PayloadSink,
    stop_event: Optional[threading.Event] = None,
) -> MetricsSnapshot:
    """
    Читает фид, батчит товары и отправляет батчи в sink.

    Схема (один поток, строгий порядок):
    - iter_products лениво отдаёт товары по мере закрытия <item>
    - каждый товар сразу добавляется в BatchAccumulator
    - accumulator сам делает flush в sink при достижении лимита
    - в конце фида (или по stop_event): финальный flush остатка

    Ошибки SourceUnavailableError / MalformedInputError пробрасываются всегда.
    OversizedRecordError и SinkFailureError тоже, если в конфиге
    не включены соответствующие режимы терпимости.

    :param cfg: PipelineConfig.
    :param sink: Получатель payload.
    :param stop_event: Событие остановки (graceful shutdown).
    :return: Финальный MetricsSnapshot.
    """
    metrics = PipelineMetrics()
    stats = ReaderStats()
    accumulator = BatchAccumulator(sink, max_bytes=cfg.max_batch_bytes)

    logger.info(
        "Pipeline started. feed=%s max_batch_bytes=%s",
        str(cfg.feed_path),
        cfg.max_batch_bytes,
    )

    last = metrics.snapshot()
    last_log_t = time.monotonic()

    try:
        for record in iter_products(
            cfg.feed_path,
            item_tag_name=cfg.item_tag_name,
            huge_tree=cfg.huge_tree,
            chunk_bytes=cfg.read_chunk_bytes,
            stats=stats,
        ):
            _add_record(accumulator, record, metrics, cfg)

            if stop_event is not None and stop_event.is_set():
                logger.warning("Получен сигнал остановки, чтение фида прервано")
                break

            now = time.monotonic()
            if now - last_log_t >= cfg.log_interval_sec:
                metrics.update_reader(stats)
                snap = metrics.snapshot()
                _log_progress(snap, last)
                last = snap
                last_log_t = now

        # хвост
        _flush(accumulator, metrics, cfg)

    finally:
        metrics.update_reader(stats)
        logger.info(
            "Pipeline finished. items_seen=%s records=%s skipped=%s pending=%s",
            stats.items_seen,
            stats.records_emitted,
            stats.skipped_records,
            len(accumulator),
        )

    final = metrics.snapshot()
    _log_progress(final, last)
    return final


def _add_record(
    accumulator: BatchAccumulator,
    record: ProductRecord,
    metrics: PipelineMetrics,
    cfg: PipelineConfig,
) -> None:
    """
    Добавляет товар в accumulator с учётом режимов терпимости.

    :param accumulator: BatchAccumulator.
    :param record: ProductRecord.
    :param metrics: PipelineMetrics.
    :param cfg: PipelineConfig.
    :return: None.
    """
    try:
        flushed = accumulator.add(record)
    except OversizedRecordError as e:
        metrics.inc("oversized_records")
        if not cfg.skip_oversized_records:
            raise
        logger.warning("Товар пропущен: %s", e)
        return
    except SinkFailureError:
        metrics.inc("sink_failures")
        if not cfg.tolerate_sink_failures:
            raise
        logger.exception("Sink отклонил батч, продолжаем")
        # вытесненный батч уже очищен, товар начинает новый
        flushed = accumulator.add(record)

    if flushed is not None:
        _count_delivered(metrics, flushed)


def _flush(
    accumulator: BatchAccumulator,
    metrics: PipelineMetrics,
    cfg: PipelineConfig,
) -> None:
    try:
        batch = accumulator.flush()
    except SinkFailureError:
        metrics.inc("sink_failures")
        if not cfg.tolerate_sink_failures:
            raise
        logger.exception("Sink отклонил финальный батч")
        return

    if batch is not None:
        _count_delivered(metrics, batch)


def _count_delivered(metrics: PipelineMetrics, batch: Batch) -> None:
    metrics.inc("payloads_delivered")
    metrics.inc("records_delivered", len(batch.records))
    metrics.inc("bytes_delivered", batch.size_bytes)
    logger.debug(
        "Batch delivered: records=%s bytes=%s", len(batch.records), batch.size_bytes
    )


def _log_progress(cur: MetricsSnapshot, prev: MetricsSnapshot) -> None:
    """
    Логирует прогресс и throughput между двумя снимками.

    :param cur: Текущий снимок.
    :param prev: Предыдущий снимок.
    :return: None.
    """
    dt = max(1e-6, cur.ts - prev.ts)

    dr = cur.records_parsed - prev.records_parsed

    logger.info(
        "progress: parsed=%s (%.0f rec/s) delivered=%s payloads=%s bytes=%s "
        "skipped=%s oversized=%s sink_failures=%s",
        cur.records_parsed,
        dr / dt,
        cur.records_delivered,
        cur.payloads_delivered,
        cur.bytes_delivered,
        cur.skipped_records,
        cur.oversized_records,
        cur.sink_failures,
    )
