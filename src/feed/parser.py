from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterator, List, Optional

RECOGNIZED_FIELDS = frozenset({"id", "title", "description"})


@dataclass(frozen=True)
class ProductRecord:
    """
    Товар, извлечённый из XML-фида.

    Соответствует элементу <item> и содержит только поля,
    которые уходят дальше в JSON-батчи (в этом порядке).

    :ivar id: Идентификатор товара. Обязателен, непустой.
    :ivar title: Название товара (может быть пустой строкой).
    :ivar description: Описание товара (может быть пустой строкой).
    """

    id: str
    title: str
    description: str


@dataclass
class ReaderStats:
    """
    Счётчики работы streaming-ридера фида.

    :ivar items_seen: Количество закрытых элементов <item>.
    :ivar records_emitted: Количество валидных товаров, отданных дальше.
    :ivar skipped_records: Количество <item> без обязательных полей.
    """

    items_seen: int = 0
    records_emitted: int = 0
    skipped_records: int = 0


@dataclass
class _InsideItem:
    """Состояние разбора внутри открытого <item>."""

    values: Dict[str, str] = field(default_factory=dict)
    current: Optional[str] = None
    buffer: List[str] = field(default_factory=list)


def local_name(tag: str) -> str:
    """
    Возвращает локальное имя тега без namespace.

    lxml отдаёт теги с объявленным namespace в нотации Clark ("{uri}id"),
    а необъявленный префикс может остаться в имени ("g:id").
    Оба варианта сводятся к "id".

    :param tag: Имя тега.
    :return: Локальное имя тега.
    """
    if tag.startswith("{"):
        tag = tag.partition("}")[2]
    if ":" in tag:
        return tag.split(":", 1)[1]
    return tag


def _is_valid(values: Dict[str, str]) -> bool:
    return bool(values.get("id")) and "title" in values and "description" in values


class ItemExtractor:
    """
    Конечный автомат, превращающий XML-события в поток ProductRecord.

    Состояние хранится одним значением: None (снаружи <item>) или _InsideItem.
    На каждый тип события есть отдельный метод: open_tag / text / cdata /
    close_tag, плюс finish() на конец потока.

    Дополнительно класс реализует протокол parser target из lxml
    (start / data / end / close), поэтому его можно передать напрямую в
    etree.XMLParser(target=...). Готовые записи копятся в очереди и
    забираются через drain() в порядке закрытия <item>.

    :param item_tag_name: Локальное имя тега товара.
    :param stats: Опциональный ReaderStats для накопления статистики.
    """

    def __init__(self, item_tag_name: str = "item", stats: Optional[ReaderStats] = None) -> None:
        self.item_tag_name = item_tag_name
        self.stats = stats if stats is not None else ReaderStats()
        self._state: Optional[_InsideItem] = None
        self._ready: Deque[ProductRecord] = deque()

    @property
    def inside_item(self) -> bool:
        return self._state is not None

    def open_tag(self, tag: str) -> None:
        name = local_name(tag)

        if name == self.item_tag_name:
            self._state = _InsideItem()
            return

        if self._state is not None:
            self._state.current = name
            self._state.buffer = []

    def text(self, chunk: str) -> None:
        state = self._state
        if state is not None and state.current is not None:
            state.buffer.append(chunk)

    def cdata(self, chunk: str) -> None:
        # CDATA склеивается с обычным текстом без какого-либо экранирования
        self.text(chunk)

    def close_tag(self, tag: str) -> None:
        state = self._state
        if state is None:
            return

        name = local_name(tag)

        if name == self.item_tag_name:
            self._finish_item(state)
            self._state = None
            return

        if name in RECOGNIZED_FIELDS:
            # повторный тег перезаписывает значение
            state.values[name] = "".join(state.buffer).strip()

        state.current = None
        state.buffer = []

    def finish(self) -> None:
        """
        Конец потока событий.

        Незакрытый <item> молча отбрасывается (без валидации и без выдачи).

        :return: None.
        """
        self._state = None

    def drain(self) -> Iterator[ProductRecord]:
        """
        Отдаёт накопленные записи в порядке закрытия <item> и очищает очередь.

        :yield: ProductRecord.
        """
        while self._ready:
            yield self._ready.popleft()

    def _finish_item(self, state: _InsideItem) -> None:
        self.stats.items_seen += 1

        if not _is_valid(state.values):
            self.stats.skipped_records += 1
            return

        self.stats.records_emitted += 1
        self._ready.append(
            ProductRecord(
                id=state.values["id"],
                title=state.values["title"],
                description=state.values["description"],
            )
        )

    # lxml parser target protocol

    def start(self, tag: str, attrib: Dict[str, str]) -> None:
        self.open_tag(tag)

    def data(self, data: str) -> None:
        self.text(data)

    def end(self, tag: str) -> None:
        self.close_tag(tag)

    def close(self) -> None:
        self.finish()
