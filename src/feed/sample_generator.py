import argparse
from pathlib import Path
from xml.sax.saxutils import escape

GOOGLE_NS = "http://base.google.com/ns/1.0"


def generate_sample_feed(
    out_path: Path,
    items: int = 1000,
    description_bytes: int = 64,
    namespaced: bool = False,
) -> None:
    """
    Генерирует синтетический XML-фид товаров для тестов/бенчмарков.

    Формат (namespaced=True: теги полей с префиксом g:, как в Google Shopping):
    <rss xmlns:g="http://base.google.com/ns/1.0">
      <channel>
        <item>
          <g:id>1</g:id>
          <g:title>Product 1</g:title>
          <g:description><![CDATA[xxxx...]]></g:description>
        </item>
      </channel>
    </rss>

    :param out_path: Путь, куда сохранить XML-файл.
    :param items: Количество элементов <item>.
    :param description_bytes: Длина описания каждого товара (ASCII, байты).
    :param namespaced: Писать теги полей с префиксом g:.
    :return: None.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    prefix = "g:" if namespaced else ""

    with out_path.open("w", encoding="utf-8") as f:
        f.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        f.write(f'<rss version="2.0" xmlns:g="{GOOGLE_NS}">\n')
        f.write("  <channel>\n")

        for pid in range(1, items + 1):
            description = ("Product %d " % pid).ljust(description_bytes, "x")
            f.write("    <item>\n")
            f.write(f"      <{prefix}id>{pid}</{prefix}id>\n")
            f.write(
                f"      <{prefix}title>{escape(f'Product {pid} & Co')}</{prefix}title>\n"
            )
            f.write(
                f"      <{prefix}description>"
                f"<![CDATA[{description[:description_bytes]}]]>"
                f"</{prefix}description>\n"
            )
            f.write("    </item>\n")

        f.write("  </channel>\n")
        f.write("</rss>\n")


def main() -> None:
    """
    Запуск из терминала функции generate_sample_feed.

    :return: None.
    """
    parser = argparse.ArgumentParser(description="Generate sample product feed")
    parser.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Output XML file path",
    )
    parser.add_argument(
        "--items",
        type=int,
        default=1000,
        help="Number of <item> elements",
    )
    parser.add_argument(
        "--description-bytes",
        type=int,
        default=64,
        help="Length of every product description",
    )
    parser.add_argument(
        "--namespaced",
        action="store_true",
        help="Use g: prefixed field tags",
    )

    args = parser.parse_args()

    generate_sample_feed(
        out_path=args.out,
        items=args.items,
        description_bytes=args.description_bytes,
        namespaced=args.namespaced,
    )


if __name__ == "__main__":
    main()
