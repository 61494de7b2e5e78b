import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

from src.pipeline.runner import PipelineConfig, run_pipeline
from src.pipeline.sink import DirectorySink, LoggingSink, PayloadSink
from src.settings.env_settings import BYTES_PER_MB
from src.settings.logging import logger
from src.settings.settings import AppSettings, settings
from src.utils.errors import FeedError


def build_sink(kind: str, out_dir: Path) -> PayloadSink:
    """
    Создаёт sink по имени из настроек.

    :param kind: "log" или "dir".
    :param out_dir: Каталог для DirectorySink.
    :return: Экземпляр PayloadSink.
    """
    if kind == "dir":
        return DirectorySink(out_dir)
    return LoggingSink()


def build_config(app: AppSettings, args: argparse.Namespace) -> PipelineConfig:
    """
    Собирает PipelineConfig из настроек и аргументов командной строки.

    Аргументы командной строки имеют приоритет над ENV и config.ini.

    :param app: Загруженные настройки приложения.
    :param args: Разобранные аргументы.
    :return: PipelineConfig.
    """
    max_batch_bytes = app.max_batch_bytes
    if args.max_batch_mb is not None:
        max_batch_bytes = int(args.max_batch_mb * BYTES_PER_MB)

    return PipelineConfig(
        feed_path=Path(args.feed or app.feed_path),
        max_batch_bytes=max_batch_bytes,
        item_tag_name=app.ini.item_tag_name,
        huge_tree=app.ini.lxml_huge_tree,
        read_chunk_bytes=app.ini.read_chunk_bytes,
        skip_oversized_records=app.ini.skip_oversized_records,
        tolerate_sink_failures=app.ini.tolerate_sink_failures,
        log_interval_sec=app.ini.log_interval_sec,
    )


def _install_signal_handlers(stop_event: threading.Event) -> None:
    """
    SIGINT/SIGTERM выставляют stop_event: пайплайн перестаёт читать фид
    и отправляет уже накопленный батч.

    :param stop_event: Событие остановки.
    :return: None.
    """

    def _handler(signum, _frame) -> None:
        logger.warning("Получен сигнал %s, завершаем работу", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Split product feed into JSON batches")
    parser.add_argument("--feed", type=Path, default=None, help="XML feed path")
    parser.add_argument(
        "--max-batch-mb",
        type=float,
        default=None,
        help="Batch size ceiling in MB (payloads stay strictly below it)",
    )
    parser.add_argument(
        "--sink",
        choices=("log", "dir"),
        default=None,
        help="Where to deliver batches",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=None,
        help="Output directory for --sink dir",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Точка входа для запуска пайплайна.

    Последовательность выполнения:
    1) Читает настройки и аргументы командной строки
    2) Ставит обработчики SIGINT/SIGTERM
    3) Запускает streaming XML → JSON-батчи → sink
    4) Логирует итоговые метрики

    :param argv: Аргументы командной строки (по умолчанию sys.argv).
    :return: Код выхода: 0 при успехе, 1 при ошибке обработки фида.
    """
    args = parse_args(argv)
    cfg = build_config(settings, args)
    sink = build_sink(
        args.sink or settings.ini.sink_kind,
        args.out_dir or Path(settings.ini.sink_output_dir),
    )

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)

    logger.info("Запуск pipeline: %s", cfg)
    try:
        snap = run_pipeline(cfg, sink, stop_event=stop_event)
    except FeedError:
        logger.exception("Ошибка обработки фида")
        return 1

    logger.info("Pipeline завершил работу: %s", snap.as_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
