"""
Extraction - каноническая модель извлечённых ключей.

Из сырых кандидатов сканера строит дедуплицированный набор ExtractedKey:
namespace, признаки plural/ordinal/expanded и значение по умолчанию.
Набор неизменяем в пределах одного запуска.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ToolkitConfig
from .errors import KeyscopeError, ScanError
from .plurals import split_plural_suffix
from .scanner import KeyCandidate, coerce_candidate

logger = logging.getLogger(__name__)

KeysByNamespace = Dict[str, List["ExtractedKey"]]


@dataclass(frozen=True)
class ExtractedKey:
    """Ключ перевода, найденный в исходниках."""
    key: str
    namespace: str
    has_count: bool = False
    is_ordinal: bool = False
    is_expanded_plural: bool = False
    default_value: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, str]:
        return self.namespace, self.key


def split_namespace(raw_key: str, config: ToolkitConfig,
                    explicit_ns: Optional[str] = None) -> Tuple[str, str]:
    """
    Определяет namespace ключа.

    Префикс "ns:key" важнее явного ns, явный ns важнее defaultNS.

    Returns:
        (namespace, key)
    """
    ns_sep = config.extract.ns_separator
    if ns_sep and ns_sep in raw_key:
        prefix, rest = raw_key.split(ns_sep, 1)
        if prefix and rest:
            return prefix, rest
    return explicit_ns or config.extract.namespace_for_missing, raw_key


def normalize_candidate(candidate: KeyCandidate, config: ToolkitConfig) -> ExtractedKey:
    """Превращает кандидата в ExtractedKey."""
    namespace, key = split_namespace(candidate.key, config, candidate.namespace)

    is_ordinal = candidate.is_ordinal
    is_expanded = False
    if candidate.has_count:
        suffix = split_plural_suffix(key, config.extract.plural_separator)
        if suffix is not None:
            is_expanded = True
            is_ordinal = suffix[2]

    return ExtractedKey(
        key=key,
        namespace=namespace,
        has_count=candidate.has_count,
        is_ordinal=is_ordinal,
        is_expanded_plural=is_expanded,
        default_value=candidate.default_value,
    )


def build_extracted_keys(candidates: Iterable, config: ToolkitConfig) -> List[ExtractedKey]:
    """
    Строит дедуплицированный список ключей.

    Дубликаты (namespace, key) сливаются: позиция первого вхождения,
    флаги через OR, первое непустое значение по умолчанию.
    """
    merged: "OrderedDict[Tuple[str, str], ExtractedKey]" = OrderedDict()

    for item in candidates:
        extracted = normalize_candidate(coerce_candidate(item), config)
        existing = merged.get(extracted.identity)
        if existing is None:
            merged[extracted.identity] = extracted
            continue

        merged[extracted.identity] = replace(
            existing,
            has_count=existing.has_count or extracted.has_count,
            is_ordinal=existing.is_ordinal or extracted.is_ordinal,
            is_expanded_plural=existing.is_expanded_plural or extracted.is_expanded_plural,
            default_value=existing.default_value or extracted.default_value,
        )

    return list(merged.values())


def group_by_namespace(keys: Iterable[ExtractedKey],
                       ignore_namespaces: Iterable[str] = ()) -> KeysByNamespace:
    """Группирует ключи по namespace, игнорируемые отбрасываются сразу."""
    ignored = set(ignore_namespaces)
    grouped: KeysByNamespace = OrderedDict()
    for extracted in keys:
        if extracted.namespace in ignored:
            continue
        grouped.setdefault(extracted.namespace, []).append(extracted)

    if ignored:
        logger.debug("Игнорируемые namespace: %s", ", ".join(sorted(ignored)))
    return grouped


def extract_keys(scanner, config: ToolkitConfig) -> List[ExtractedKey]:
    """
    Запускает сканер и строит модель ключей.

    Raises:
        ScanError: любая ошибка сканера (без повторов)
    """
    scan = getattr(scanner, "scan", scanner)
    try:
        candidates = list(scan())
        keys = build_extracted_keys(candidates, config)
    except KeyscopeError:
        raise
    except Exception as e:
        raise ScanError(f"Ошибка сканирования исходников: {e}") from e

    logger.info("Извлечено ключей: %d (кандидатов: %d)", len(keys), len(candidates))
    return keys
