class SettingsError(Exception):
    """Ошибка загрузки или валидации настроек приложения."""


class FeedError(Exception):
    """
    Базовая ошибка обработки фида.

    Все ошибки запуска пайплайна наследуются от неё, чтобы точка входа
    могла обработать их единообразно.
    """


class SourceUnavailableError(FeedError):
    """Файл фида не удалось открыть или прочитать."""


class MalformedInputError(FeedError):
    """XML фида синтаксически некорректен (незакрытые теги, битая кодировка и т.п.)."""


class OversizedRecordError(FeedError):
    """
    Запись не помещается даже в батч из одного элемента.

    :ivar size: Размер JSON-представления записи в байтах.
    :ivar max_bytes: Настроенный лимит размера батча в байтах.
    """

    def __init__(self, size: int, max_bytes: int, record_id: str | None = None) -> None:
        self.size = size
        self.max_bytes = max_bytes
        self.record_id = record_id
        super().__init__(
            f"Запись id={record_id!r} размером {size} байт "
            f"не помещается в батч с лимитом {max_bytes} байт"
        )


class SinkFailureError(FeedError):
    """Получатель батчей (sink) отклонил payload."""
