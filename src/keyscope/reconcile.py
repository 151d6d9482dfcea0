"""
Reconcile - сверка извлечённых ключей с файлами переводов.

Для каждой дополнительной локали, namespace и ключа:
1. обычный ключ - один поиск (переведён / отсутствует);
2. развёрнутый plural (item_one) - учитывается, только если его
   категория есть у локали, иначе исключается из подсчёта;
3. базовый plural (item + count) - разворачивается во все категории
   локали, каждая - отдельная запись.

Поиск: свой namespace, затем fallbackNS. Переведён = непустая строка.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import ToolkitConfig
from .extraction import ExtractedKey, KeysByNamespace, extract_keys, group_by_namespace
from .nested import get_nested_value
from .plurals import ORDINAL_MARKER, PluralResolver, split_plural_suffix
from .store import LookupSource, TranslationStore

logger = logging.getLogger(__name__)


@dataclass
class KeyStatus:
    """Статус одного (развёрнутого) ключа."""
    key: str
    is_translated: bool
    resolved_namespace: Optional[str] = None


@dataclass
class NamespaceStatus:
    """Статус namespace для одной локали."""
    total_keys: int = 0
    translated_keys: int = 0
    key_details: List[KeyStatus] = field(default_factory=list)

    @property
    def missing_keys(self) -> int:
        return self.total_keys - self.translated_keys


@dataclass
class LocaleStatus:
    """Статус локали по всем namespace."""
    total_keys: int = 0
    total_translated: int = 0
    namespaces: Dict[str, NamespaceStatus] = field(default_factory=dict)

    @property
    def missing_keys(self) -> int:
        return self.total_keys - self.total_translated


@dataclass
class StatusReport:
    """Итоговый отчёт о состоянии переводов."""
    total_base_keys: int = 0
    keys_by_namespace: KeysByNamespace = field(default_factory=dict)
    locales: Dict[str, LocaleStatus] = field(default_factory=dict)

    @property
    def has_missing_translations(self) -> bool:
        return any(
            data.total_translated < data.total_keys for data in self.locales.values()
        )

    def to_dict(self) -> Dict:
        return {
            "total_base_keys": self.total_base_keys,
            "keys_by_namespace": {
                ns: [asdict(k) for k in keys] for ns, keys in self.keys_by_namespace.items()
            },
            "locales": {locale: asdict(data) for locale, data in self.locales.items()},
        }

    def to_json(self, compact: bool = False) -> str:
        if compact:
            return json.dumps(self.to_dict(), ensure_ascii=False, separators=(',', ':'))
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)


def has_missing_translations(report: StatusReport) -> bool:
    """Есть ли локаль с непереведёнными ключами."""
    return report.has_missing_translations


class ReconciliationEngine:
    """
    Движок сверки ключей с деревьями переводов.

    Только чтение: изменения файлов планирует syncer на основе
    тех же разворотов ключей (expand_key).
    """

    def __init__(self, config: ToolkitConfig, store: TranslationStore,
                 resolver: Optional[PluralResolver] = None):
        self.config = config
        self.store = store
        self.resolver = resolver or PluralResolver()

    @property
    def plural_separator(self) -> str:
        return self.config.extract.plural_separator

    def expand_key(self, extracted: ExtractedKey, locale: str) -> List[str]:
        """
        Разворачивает ключ в ключи, которые нужны локали.

        Returns:
            Список ключей; пустой, если развёрнутая форма локали не нужна
        """
        if not extracted.has_count:
            return [extracted.key]

        sep = self.plural_separator
        if extracted.is_expanded_plural:
            suffix = split_plural_suffix(extracted.key, sep)
            if suffix is None:
                return [extracted.key]
            _, category, is_ordinal = suffix
            if category in self.resolver.resolve(locale, is_ordinal):
                return [extracted.key]
            logger.debug(
                "Ключ %s:%s исключён для '%s' (категория '%s' не используется)",
                extracted.namespace, extracted.key, locale, category,
            )
            return []

        categories = self.resolver.resolve(locale, extracted.is_ordinal)
        prefix = f"{extracted.key}{sep}{ORDINAL_MARKER}{sep}" if extracted.is_ordinal \
            else f"{extracted.key}{sep}"
        return [f"{prefix}{category}" for category in categories]

    def lookup(self, sources: Sequence[LookupSource], key: str) -> Optional[LookupSource]:
        """Первый источник с непустой строкой по ключу."""
        separator = self.config.extract.key_separator
        for source in sources:
            value = get_nested_value(source.tree, key, separator)
            if isinstance(value, str) and value:
                return source
        return None

    def reconcile_namespace(self, locale: str, namespace: str,
                            keys: Iterable[ExtractedKey]) -> NamespaceStatus:
        """Статус одного namespace для локали."""
        sources = self.store.lookup_sources(locale, namespace)
        status = NamespaceStatus()

        for extracted in keys:
            for key in self.expand_key(extracted, locale):
                source = self.lookup(sources, key)
                is_translated = source is not None
                status.total_keys += 1
                if is_translated:
                    status.translated_keys += 1
                status.key_details.append(KeyStatus(
                    key=key,
                    is_translated=is_translated,
                    resolved_namespace=source.namespace if source else None,
                ))

        return status

    def reconcile_locale(self, locale: str,
                         keys_by_namespace: KeysByNamespace) -> LocaleStatus:
        """Статус локали по всем namespace."""
        result = LocaleStatus()
        for namespace, keys in keys_by_namespace.items():
            ns_status = self.reconcile_namespace(locale, namespace, keys)
            result.namespaces[namespace] = ns_status
            result.total_keys += ns_status.total_keys
            result.total_translated += ns_status.translated_keys
        return result

    def compute(self, keys_by_namespace: KeysByNamespace,
                locales: Optional[List[str]] = None) -> StatusReport:
        """
        Строит отчёт по дополнительным локалям.

        Args:
            keys_by_namespace: Ключи после фильтрации ignoreNamespaces
            locales: Локали для сверки (по умолчанию secondaryLanguages)
        """
        locales = self.config.secondary_languages if locales is None else locales
        report = StatusReport(
            total_base_keys=sum(len(keys) for keys in keys_by_namespace.values()),
            keys_by_namespace=keys_by_namespace,
        )

        pairs = [(locale, ns) for locale in locales for ns in keys_by_namespace]
        fallback_ns = self.config.extract.fallback_ns
        if fallback_ns:
            pairs.extend((locale, fallback_ns) for locale in locales)
        self.store.preload(pairs)

        for locale in locales:
            locale_status = self.reconcile_locale(locale, keys_by_namespace)
            report.locales[locale] = locale_status
            logger.info(
                "[%s] переведено %d из %d", locale,
                locale_status.total_translated, locale_status.total_keys,
            )
        return report


def compute_status(config: ToolkitConfig, scanner, root: Path = Path("."),
                   resolver: Optional[PluralResolver] = None) -> StatusReport:
    """
    Полный путь чтения: конфигурация -> извлечение -> сверка.

    Raises:
        ConfigError: до извлечения, если языки не определяются
        ScanError: ошибка сканера
    """
    config.resolve_languages()
    keys = extract_keys(scanner, config)
    keys_by_namespace = group_by_namespace(keys, config.extract.ignore_namespaces)

    store = TranslationStore(config, root)
    engine = ReconciliationEngine(config, store, resolver or PluralResolver())
    return engine.compute(keys_by_namespace)
