"""
keyscope - сверка ключей перевода из исходного кода с файлами локалей.

Модули:
- nested: доступ к вложенным деревьям переводов по пути "a.b.c"
- plurals: категории множественного числа (CLDR через Babel)
- scanner: источники кандидатов в ключи (regex, JSON)
- extraction: модель извлечённых ключей
- store: чтение/атомарная запись файлов переводов
- reconcile: сверка и отчёт о состоянии переводов
- syncer: планирование записи файлов по результатам сверки
- report: вывод отчёта в консоль
- manager: CLI status / sync
"""

from .config import ToolkitConfig, ExtractConfig, load_config
from .errors import (
    ConfigError,
    FileReadError,
    KeyscopeError,
    LocaleDataError,
    ScanError,
    UserInputError,
)
from .extraction import ExtractedKey, build_extracted_keys, group_by_namespace
from .plurals import PluralResolver
from .reconcile import ReconciliationEngine, StatusReport, compute_status
from .syncer import WriteIntent, apply_sync, plan_sync

__version__ = "0.3.0"

__all__ = [
    "ConfigError",
    "ExtractConfig",
    "ExtractedKey",
    "FileReadError",
    "KeyscopeError",
    "LocaleDataError",
    "PluralResolver",
    "ReconciliationEngine",
    "ScanError",
    "StatusReport",
    "ToolkitConfig",
    "UserInputError",
    "WriteIntent",
    "apply_sync",
    "build_extracted_keys",
    "compute_status",
    "group_by_namespace",
    "load_config",
    "plan_sync",
]
