from pathlib import Path
from typing import Protocol, runtime_checkable

import orjson

from src.settings.logging import logger

ONE_MEGA_BYTE = 1_048_576.0


@runtime_checkable
class PayloadSink(Protocol):
    """
    Получатель готовых батчей.

    deliver() вызывается синхронно из BatchAccumulator.flush() по одному
    payload за раз, в порядке формирования батчей. Любое исключение
    считается отказом доставки.
    """

    def deliver(self, payload: str) -> None: ...


class LoggingSink:
    """
    Sink, который только логирует полученные батчи.

    Для каждого payload пишет номер батча, размер в MB и число товаров.
    """

    def __init__(self) -> None:
        self.batches_received = 0

    def deliver(self, payload: str) -> None:
        self.batches_received += 1
        products = orjson.loads(payload)
        size_mb = len(payload.encode("utf-8")) / ONE_MEGA_BYTE

        logger.info(
            "Received batch %4d: size=%10.2fMB products=%8d",
            self.batches_received,
            size_mb,
            len(products),
        )


class DirectorySink:
    """
    Sink, сохраняющий каждый payload в отдельный файл.

    Файлы именуются batch_0001.json, batch_0002.json, ... в порядке доставки.

    :param out_dir: Каталог для файлов (создаётся при необходимости).
    """

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = Path(out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self.batches_written = 0

    def deliver(self, payload: str) -> None:
        path = self.out_dir / f"batch_{self.batches_written + 1:04d}.json"
        path.write_text(payload, encoding="utf-8")
        self.batches_written += 1
        logger.debug("Батч записан: %s", path)
