import os
from dataclasses import dataclass

from src.utils.errors import SettingsError

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class EnvSettings:
    """
    Класс для загрузки и валидации настроек из переменных окружения.

    Все переменные необязательные и переопределяют значения из config.ini:
    - MAX_BATCH_SIZE_MB: лимит размера батча в мегабайтах (может быть дробным);
    - FEED_PATH: путь к XML-фиду.

    LOG_LEVEL читается напрямую модулем логирования.
    """

    max_batch_bytes: int | None
    feed_path: str | None

    @classmethod
    def load(cls) -> "EnvSettings":
        """
        Загружает и валидирует настройки из переменных окружения.

        :return: Экземпляр EnvSettings с корректно загруженными настройками.
        :raises SettingsError: Если значение переменной имеет некорректный формат.
        """
        size_mb = cls._float("MAX_BATCH_SIZE_MB")
        max_batch_bytes = None
        if size_mb is not None:
            if size_mb <= 0:
                raise SettingsError(
                    f"ENV MAX_BATCH_SIZE_MB должен быть положительным, получено: {size_mb}"
                )
            max_batch_bytes = int(size_mb * BYTES_PER_MB)

        return cls(max_batch_bytes=max_batch_bytes, feed_path=cls._optional("FEED_PATH"))

    @staticmethod
    def _optional(name: str) -> str | None:
        """
        Возвращает переменную окружения или None, если она не задана/пустая.

        :param name: Имя переменной окружения.
        :return: Значение переменной или None.
        """
        value = os.getenv(name)
        if value is None or value.strip() == "":
            return None
        return value.strip()

    @classmethod
    def _float(cls, name: str) -> float | None:
        """
        Возвращает дробную переменную окружения.

        :param name: Имя переменной окружения.
        :return: Значение в виде float или None, если переменная не задана.
        :raises SettingsError: Если значение невозможно привести к float.
        """
        value = cls._optional(name)
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            raise SettingsError(f"ENV {name} должен быть числом, получено: {value!r}")
