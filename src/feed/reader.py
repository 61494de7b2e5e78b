from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from lxml import etree

from src.feed.parser import ItemExtractor, ProductRecord, ReaderStats
from src.utils.errors import MalformedInputError, SourceUnavailableError

__all__ = ["ReaderStats", "iter_products"]

DEFAULT_CHUNK_BYTES = 64 * 1024


def _open_feed(feed_path: Path) -> BinaryIO:
    try:
        return open(feed_path, "rb")
    except OSError as e:
        raise SourceUnavailableError(f"Не удалось открыть фид {feed_path}: {e}") from e


def _read_chunk(source: BinaryIO, feed_path: Path, size: int) -> bytes:
    try:
        return source.read(size)
    except OSError as e:
        raise SourceUnavailableError(f"Ошибка чтения фида {feed_path}: {e}") from e


def iter_products(
    feed_path: Path,
    item_tag_name: str = "item",
    huge_tree: bool = True,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    stats: Optional[ReaderStats] = None,
) -> Iterator[ProductRecord]:
    """
    Потоково читает XML-фид и возвращает товары по одному.

    Файл читается кусками по chunk_bytes и скармливается
    lxml.etree.XMLParser в режиме feed(), а события парсера напрямую
    попадают в ItemExtractor (parser target). После каждого куска
    отдаются все товары, чьи <item> уже закрылись, поэтому в памяти
    никогда не держится весь документ.

    Алгоритм:
    1) открыть файл (ошибка -> SourceUnavailableError)
    2) читать кусок, parser.feed(кусок), выдать готовые записи
    3) на конце файла parser.close() и выдать остаток
    4) любая XMLSyntaxError -> MalformedInputError

    :param feed_path: Путь к XML-файлу.
    :param item_tag_name: Локальное имя тега товара.
    :param huge_tree: Разрешить обработку "больших" текстовых узлов.
    :param chunk_bytes: Размер куска чтения в байтах.
    :param stats: Опциональный объект ReaderStats для накопления статистики.
    :yield: ProductRecord в порядке документа.
    :return: Итератор (generator), выдающий ProductRecord.
    """
    extractor = ItemExtractor(item_tag_name=item_tag_name, stats=stats)
    parser = etree.XMLParser(target=extractor, huge_tree=huge_tree)

    with _open_feed(Path(feed_path)) as source:
        while True:
            chunk = _read_chunk(source, feed_path, chunk_bytes)
            if not chunk:
                break

            try:
                parser.feed(chunk)
            except etree.XMLSyntaxError as e:
                raise MalformedInputError(f"Некорректный XML в {feed_path}: {e}") from e

            yield from extractor.drain()

    try:
        parser.close()
    except etree.XMLSyntaxError as e:
        raise MalformedInputError(f"Некорректный XML в {feed_path}: {e}") from e

    yield from extractor.drain()
