from dataclasses import dataclass
from typing import List

import orjson

from src.feed.parser import ProductRecord
from src.pipeline.sink import PayloadSink
from src.utils.errors import OversizedRecordError, SinkFailureError

DEFAULT_MAX_BATCH_BYTES = 5 * 1024 * 1024

EMPTY_ARRAY_BYTES = len(b"[]")
SEPARATOR_BYTES = len(b",")


def serialize_record(record: ProductRecord) -> bytes:
    """
    Каноническое JSON-представление товара.

    Компактный JSON без пробелов, UTF-8, ровно три ключа
    id / title / description в порядке полей dataclass.

    :param record: Товар.
    :return: Байты JSON-объекта.
    """
    return orjson.dumps(record)


@dataclass(frozen=True)
class Batch:
    """
    Отправленный батч.

    :param records: Товары в порядке добавления.
    :param payload: JSON-массив, переданный в sink.
    :param size_bytes: Размер payload в байтах (UTF-8).
    """

    records: List[ProductRecord]
    payload: str
    size_bytes: int


class BatchAccumulator:
    """
    Накопитель товаров в JSON-батчи строго меньше max_bytes.

    Размер будущего JSON-массива считается инкрементально:
    2 байта на "[]" + размер каждого объекта + 1 байт на каждую запятую.
    Каждый товар сериализуется ровно один раз, при flush payload
    склеивается из уже готовых байтов.

    :param sink: Получатель готовых payload.
    :param max_bytes: Лимит размера payload в байтах (payload всегда < max_bytes).
    """

    def __init__(self, sink: PayloadSink, *, max_bytes: int = DEFAULT_MAX_BATCH_BYTES) -> None:
        if max_bytes <= EMPTY_ARRAY_BYTES:
            raise ValueError(f"max_bytes must be greater than {EMPTY_ARRAY_BYTES}, got {max_bytes}")

        self.sink = sink
        self.max_bytes = int(max_bytes)

        self._records: List[ProductRecord] = []
        self._encoded: List[bytes] = []
        self._bytes: int = EMPTY_ARRAY_BYTES

    def __len__(self) -> int:
        """
        Возвращает текущее количество товаров в накапливаемом батче.

        :return: Количество товаров в буфере.
        """
        return len(self._records)

    @property
    def bytes_estimate(self) -> int:
        """
        Точный размер JSON-массива, который получится при flush.

        :return: Размер в байтах (2 для пустого батча).
        """
        return self._bytes

    def _additional_bytes(self, record_bytes: int) -> int:
        if self._records:
            return record_bytes + SEPARATOR_BYTES
        return record_bytes

    def add(self, record: ProductRecord) -> Batch | None:
        """
        Добавляет товар.

        Если с этим товаром батч достиг бы лимита, сначала отправляет
        текущий батч в sink, и товар начинает новый батч.

        :param record: Товар.
        :return: Batch, если перед добавлением был сделан flush, иначе None.
        :raises OversizedRecordError: Товар не помещается даже в пустой батч.
        Текущий батч при этом не меняется.
        :raises SinkFailureError: sink отклонил вытесненный батч.
        """
        encoded = serialize_record(record)
        record_bytes = len(encoded)

        if EMPTY_ARRAY_BYTES + record_bytes >= self.max_bytes:
            raise OversizedRecordError(record_bytes, self.max_bytes, record_id=record.id)

        flushed = None
        if self._bytes + self._additional_bytes(record_bytes) >= self.max_bytes:
            flushed = self.flush()

        self._bytes += self._additional_bytes(record_bytes)
        self._records.append(record)
        self._encoded.append(encoded)
        return flushed

    def flush(self) -> Batch | None:
        """
        Отправляет текущий батч в sink и очищает буфер.

        Буфер очищается до вызова sink: если sink упал, payload
        считается потерянным для накопителя.

        :return: Batch или None, если буфер пуст (sink не вызывается).
        :raises SinkFailureError: sink отклонил payload.
        """
        if not self._records:
            return None

        raw = b"[" + b",".join(self._encoded) + b"]"
        batch = Batch(records=self._records, payload=raw.decode("utf-8"), size_bytes=len(raw))

        self._records = []
        self._encoded = []
        self._bytes = EMPTY_ARRAY_BYTES

        try:
            self.sink.deliver(batch.payload)
        except Exception as e:
            raise SinkFailureError(
                f"Sink отклонил батч из {len(batch.records)} товаров "
                f"({batch.size_bytes} байт): {e!r}"
            ) from e

        return batch
