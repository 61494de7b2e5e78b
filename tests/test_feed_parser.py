from pathlib import Path

import pytest

from src.feed.parser import ItemExtractor, ProductRecord, ReaderStats, local_name
from src.feed.reader import iter_products
from src.utils.errors import MalformedInputError, SourceUnavailableError

fixtures_dir = Path(__file__).parent / "fixtures"


def _write(tmp_path: Path, body: str) -> Path:
    xml = tmp_path / "feed.xml"
    xml.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n' + body,
        encoding="utf-8",
    )
    return xml


def test_local_name_strips_namespace():
    assert local_name("g:id") == "id"
    assert local_name("id") == "id"
    assert local_name("{http://base.google.com/ns/1.0}id") == "id"
    assert local_name("a:b:c") == "b:c"


def test_extractor_state_machine_events():
    """
    Проверяет автомат ItemExtractor без парсера: события подаются вручную.

    - текст и CDATA склеиваются одинаково;
    - значения обрезаются по краям;
    - неизвестные теги игнорируются;
    - запись появляется только после закрытия <item>.
    """
    ex = ItemExtractor()

    ex.open_tag("item")
    assert ex.inside_item

    ex.open_tag("g:id")
    ex.text("  42 ")
    ex.close_tag("g:id")

    ex.open_tag("title")
    ex.text("Red ")
    ex.cdata("<b>&</b>")
    ex.close_tag("title")

    ex.open_tag("price")
    ex.text("10")
    ex.close_tag("price")

    ex.open_tag("description")
    ex.close_tag("description")

    assert list(ex.drain()) == []

    ex.close_tag("item")
    assert not ex.inside_item
    assert list(ex.drain()) == [
        ProductRecord(id="42", title="Red <b>&</b>", description="")
    ]


def _push_fields(ex: ItemExtractor, pairs) -> None:
    for tag, value in pairs:
        ex.open_tag(tag)
        ex.text(value)
        ex.close_tag(tag)


def test_extractor_ignores_fields_outside_item():
    ex = ItemExtractor()
    _push_fields(ex, [("id", "1"), ("title", "t"), ("description", "d")])
    assert list(ex.drain()) == []
    assert not ex.inside_item


def test_extractor_repeated_field_last_write_wins():
    ex = ItemExtractor()

    ex.open_tag("item")
    _push_fields(
        ex,
        [("id", "1"), ("title", "first"), ("title", "second"), ("description", "d")],
    )
    ex.close_tag("item")

    records = list(ex.drain())
    assert [r.title for r in records] == ["second"]


def test_extractor_drops_unterminated_item():
    stats = ReaderStats()
    ex = ItemExtractor(stats=stats)

    ex.open_tag("item")
    ex.open_tag("id")
    ex.text("1")
    ex.close_tag("id")
    ex.finish()

    assert list(ex.drain()) == []
    assert not ex.inside_item
    assert stats.items_seen == 0


def test_extractor_requires_all_fields():
    stats = ReaderStats()
    ex = ItemExtractor(stats=stats)

    # нет description
    ex.open_tag("item")
    ex.open_tag("id")
    ex.text("1")
    ex.close_tag("id")
    ex.open_tag("title")
    ex.close_tag("title")
    ex.close_tag("item")

    # пустой id
    ex.open_tag("item")
    ex.open_tag("id")
    ex.text("   ")
    ex.close_tag("id")
    ex.open_tag("title")
    ex.close_tag("title")
    ex.open_tag("description")
    ex.close_tag("description")
    ex.close_tag("item")

    assert list(ex.drain()) == []
    assert stats.items_seen == 2
    assert stats.skipped_records == 2
    assert stats.records_emitted == 0


def test_iter_products_from_fixture():
    """
    Тесты для streaming-ридера фида.

    Проверяет, что:
    - теги с префиксом g: и без него дают одинаковые поля;
    - <item> без id пропускается;
    - CDATA передаётся как есть (без декодирования сущностей);
    - пустые title/description допустимы;
    - лишние теги (price, channel title) игнорируются;
    - корректно обновляется статистика ReaderStats.

    :return: None.
    """
    stats = ReaderStats()
    records = list(iter_products(fixtures_dir / "feed.xml", stats=stats))

    assert records == [
        ProductRecord(id="1", title="Plain product", description="Simple description"),
        ProductRecord(
            id="2",
            title='Tools <special> & "chars"',
            description="<p>Fish &amp; chips</p>",
        ),
        ProductRecord(id="3", title="", description=""),
    ]

    assert stats.items_seen == 4
    assert stats.records_emitted == 3
    assert stats.skipped_records == 1


def test_iter_products_small_chunks_keep_order():
    """Чтение по несколько байт даёт тот же результат, что и одним куском."""
    whole = list(iter_products(fixtures_dir / "feed.xml"))
    chunked = list(iter_products(fixtures_dir / "feed.xml", chunk_bytes=7))
    assert chunked == whole


def test_iter_products_decodes_entities_and_unicode(tmp_path: Path):
    xml = _write(
        tmp_path,
        "<feed><item>"
        "<id>entity-1</id>"
        "<title>Product &amp; More</title>"
        "<description>Less &lt; Greater &gt; Quote &quot; Юникод 🎉</description>"
        "</item></feed>",
    )

    (record,) = list(iter_products(xml))
    assert record.title == "Product & More"
    assert record.description == 'Less < Greater > Quote " Юникод 🎉'


def test_iter_products_custom_item_tag(tmp_path: Path):
    xml = _write(
        tmp_path,
        "<feed><entry><id>1</id><title>t</title><description>d</description></entry>"
        "<item><id>2</id><title>t</title><description>d</description></item></feed>",
    )

    assert [r.id for r in iter_products(xml, item_tag_name="entry")] == ["1"]


def test_iter_products_empty_feed(tmp_path: Path):
    xml = _write(tmp_path, "<feed>\n</feed>")
    assert list(iter_products(xml)) == []


def test_iter_products_missing_file(tmp_path: Path):
    with pytest.raises(SourceUnavailableError):
        list(iter_products(tmp_path / "missing.xml"))


def test_iter_products_malformed_xml(tmp_path: Path):
    xml = _write(
        tmp_path,
        "<feed><item><id>broken</id><title>Unclosed tag\n</item></feed>",
    )

    with pytest.raises(MalformedInputError):
        list(iter_products(xml))
