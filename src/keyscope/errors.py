"""
Errors - таксономия ошибок keyscope.

Фатальные (прерывают запуск):
- ConfigError: нет локалей / невозможно определить основной язык
- ScanError: ошибка внешнего сканера исходников

Восстанавливаемые (запуск продолжается с пустым/частичным результатом):
- FileReadError: файл переводов не читается -> пустое дерево
- LocaleDataError: нет данных правил множественного числа -> локаль по умолчанию
- UserInputError: неизвестная локаль/namespace в запросе отчёта
"""


class KeyscopeError(Exception):
    """Базовая ошибка keyscope."""


class ConfigError(KeyscopeError):
    """Некорректная или неполная конфигурация."""


class ScanError(KeyscopeError):
    """Сканер исходного кода завершился ошибкой."""


class FileReadError(KeyscopeError):
    """Файл переводов повреждён или не читается."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Не удалось прочитать {path}: {reason}")


class LocaleDataError(KeyscopeError):
    """Для локали нет данных CLDR."""


class UserInputError(KeyscopeError):
    """Запрошен отчёт по несуществующей локали или namespace."""
