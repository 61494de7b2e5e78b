import configparser
from dataclasses import dataclass
from pathlib import Path

from src.utils.errors import SettingsError

CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config.ini"


@dataclass(frozen=True)
class IniSettings:
    """
    Класс для загрузки и валидации настроек из INI-файла.

    Отвечает за:
    - проверку существования конфигурационного файла;
    - чтение INI-файла;
    - валидацию обязательных секций и ключей;
    - предоставление настроек в виде неизменяемого объекта.

    Используется при старте приложения. При ошибках конфигурации
    выбрасывает исключение SettingsError и останавливает работу программы.
    """

    feed_path: str
    item_tag_name: str
    lxml_huge_tree: bool
    read_chunk_bytes: int
    max_batch_bytes: int
    skip_oversized_records: bool
    tolerate_sink_failures: bool
    sink_kind: str
    sink_output_dir: str
    log_interval_sec: float

    # имя_поля_в_классе -> (секция, ключ)
    _MAP = {
        "feed_path": ("FEED", "path"),
        "item_tag_name": ("FEED", "item_tag_name"),
        "lxml_huge_tree": ("FEED", "lxml_huge_tree"),
        "read_chunk_bytes": ("FEED", "read_chunk_bytes"),
        "max_batch_bytes": ("PIPELINE", "max_batch_bytes"),
        "skip_oversized_records": ("PIPELINE", "skip_oversized_records"),
        "tolerate_sink_failures": ("PIPELINE", "tolerate_sink_failures"),
        "sink_kind": ("SINK", "kind"),
        "sink_output_dir": ("SINK", "output_dir"),
        "log_interval_sec": ("LOG", "log_interval_sec"),
    }

    _SINK_KINDS = ("log", "dir")

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> "IniSettings":
        """
        Загружает и валидирует настройки из INI-файла.

        :param path: Путь к INI-файлу конфигурации.
        :return: Экземпляр IniSettings с загруженными настройками.
        :raises SettingsError: Если файл не найден, не прочитан или с ошибками.
        """
        if not path.exists():
            raise SettingsError(f"INI файл не найден: {path}")

        parser = configparser.ConfigParser()
        if not parser.read(path, encoding="utf-8"):
            raise SettingsError(f"Не удалось прочитать INI файл: {path}")

        raw_data = {
            field: cls._required(parser, sec, key, path)
            for field, (sec, key) in cls._MAP.items()
        }
        data = cls._cast_types(raw_data)

        if data["sink_kind"] not in cls._SINK_KINDS:
            raise SettingsError(
                f"Ключ 'kind' в секции [SINK] должен быть одним из "
                f"{cls._SINK_KINDS}, получено: {data['sink_kind']!r}"
            )
        if data["max_batch_bytes"] <= 2:
            raise SettingsError(
                f"max_batch_bytes должен быть больше 2, "
                f"получено: {data['max_batch_bytes']}"
            )
        if data["read_chunk_bytes"] <= 0:
            raise SettingsError(
                f"read_chunk_bytes должен быть положительным, "
                f"получено: {data['read_chunk_bytes']}"
            )

        return cls(**data)

    @staticmethod
    def _required(
        parser: configparser.ConfigParser, section: str, key: str, path: Path
    ) -> str:
        """
        Возвращает обязательный параметр из указанной секции INI-файла.

        Метод выполняет строгую валидацию:
        - проверяет наличие секции;
        - проверяет наличие ключа в секции;
        - проверяет, что значение ключа не пустое.

        :param parser: Экземпляр ConfigParser с загруженным INI-файлом.
        :param section: Имя секции INI-файла.
        :param key: Имя параметра в секции.
        :param path: Путь к INI-файлу (для сообщений об ошибках).
        :return: Значение параметра в виде строки.
        :raises SettingsError: Если секция, ключ отсутствуют или значение пустое.
        """
        if not parser.has_section(section):
            raise SettingsError(f"Секция [{section}] отсутствует в {path.name}")

        if not parser.has_option(section, key):
            raise SettingsError(
                f"Ключ '{key}' отсутствует в секции [{section}] ({path.name})"
            )

        value = parser.get(section, key)
        if not value.strip():
            raise SettingsError(
                f"Ключ '{key}' в секции [{section}] пустой ({path.name})"
            )

        return value.strip()

    @classmethod
    def _cast_types(cls, raw: dict[str, str]) -> dict[str, object]:
        """Приводит строковые значения из INI к типам, указанным в аннотациях IniSettings."""
        result: dict[str, object] = {}

        for field, value in raw.items():
            target_type = cls.__annotations__[field]

            try:
                if target_type is bool:
                    result[field] = value.lower() in {"1", "true", "yes", "on"}
                elif target_type is int:
                    result[field] = int(value)
                elif target_type is float:
                    result[field] = float(value)
                else:
                    result[field] = value
            except ValueError as e:
                raise SettingsError(
                    f"Некорректное значение для '{field}': {value}"
                ) from e

        return result
