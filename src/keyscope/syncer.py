"""
Syncer - планирование записи файлов переводов по результатам сверки.

Правила (не разрушают существующие переводы):
- вставка: ожидаемый ключ без непустого значения ни в своём namespace,
  ни в fallbackNS добавляется в свой файл; основной язык получает
  значение по умолчанию из кода, остальные - extract.defaultValue;
- обновление: только основной язык и только с sync_primary;
  sync_all дополнительно сбрасывает эти ключи в остальных локалях;
- удаление: листья, которые не ожидает ни один namespace файла
  (removeUnusedKeys).

Неизменённые файлы не порождают намерений записи.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .config import ToolkitConfig
from .extraction import ExtractedKey, KeysByNamespace
from .nested import (
    delete_nested_value,
    get_nested_value,
    iter_leaf_paths,
    merge_trees,
    set_nested_value,
)
from .reconcile import LocaleStatus, NamespaceStatus, ReconciliationEngine, StatusReport
from .store import TranslationWriter

logger = logging.getLogger(__name__)


@dataclass
class WriteIntent:
    """Намерение записать дерево в файл."""
    path: Path
    tree: Dict
    locale: str = ""
    namespaces: List[str] = field(default_factory=list)


@dataclass
class _NamespaceChanges:
    added: int = 0
    updated: int = 0
    cleared: int = 0


class SyncPlanner:
    """
    Строит WriteIntent для всех локалей проекта.

    sync_all включает sync_primary: значения основного языка обновляются
    из кода, а те же ключи в дополнительных языках сбрасываются в
    extract.defaultValue (старый перевод больше не соответствует тексту).
    """

    def __init__(self, config: ToolkitConfig, engine: ReconciliationEngine,
                 sync_primary: bool = False, sync_all: bool = False):
        self.config = config
        self.engine = engine
        self.store = engine.store
        self.sync_all = sync_all
        self.sync_primary = sync_primary or sync_all
        # namespace -> ключи, обновлённые в основном языке
        self._synced: Dict[str, Set[str]] = {}

    @property
    def separator(self):
        return self.config.extract.key_separator

    def plan(self, keys_by_namespace: KeysByNamespace,
             report: Optional[StatusReport] = None) -> List[WriteIntent]:
        """
        Планирует запись для основного и дополнительных языков.

        Args:
            keys_by_namespace: Ключи после фильтрации
            report: Готовый отчёт сверки (статусы дополнительных языков)
        """
        intents: List[WriteIntent] = []
        self._synced = {}
        # Основной язык первым: sync_all опирается на его обновления
        locales = [self.config.primary_language] + [
            loc for loc in self.config.secondary_languages
            if loc != self.config.primary_language
        ]

        for locale in locales:
            status = report.locales.get(locale) if report else None
            if status is None:
                status = self.engine.reconcile_locale(locale, keys_by_namespace)
            intents.extend(self._plan_locale(locale, keys_by_namespace, status))
        return intents

    def _plan_locale(self, locale: str, keys_by_namespace: KeysByNamespace,
                     status: LocaleStatus) -> List[WriteIntent]:
        files: "OrderedDict[Path, List[str]]" = OrderedDict()
        for namespace in keys_by_namespace:
            files.setdefault(self.store.output_path(locale, namespace), []).append(namespace)

        kept_for_fallback = self._keys_resolved_via_fallback(status)
        intents = []

        for path, namespaces in files.items():
            original = self.store.load_file(path)
            tree = merge_trees(original, {})
            targets, allow_removal = self._targets(tree, namespaces)

            # Без {{namespace}} в шаблоне несколько namespace делят одно дерево:
            # удалять можно только то, что не ждёт ни один из них
            wanted_by_target: "OrderedDict[int, Tuple[Dict, Set[str]]]" = OrderedDict()
            for namespace in namespaces:
                target = targets[namespace]
                expected = self._expected_keys(locale, keys_by_namespace[namespace])
                changes = self._sync_namespace(
                    locale, namespace, target, expected, status.namespaces.get(namespace),
                )
                if changes.added or changes.updated or changes.cleared:
                    logger.info(
                        "[%s/%s] добавлено %d, обновлено %d, сброшено %d",
                        locale, namespace, changes.added, changes.updated, changes.cleared,
                    )

                _, wanted = wanted_by_target.setdefault(id(target), (target, set()))
                wanted.update(expected)
                if namespace == self.config.extract.fallback_ns:
                    wanted.update(kept_for_fallback)

            if self.config.extract.remove_unused_keys and allow_removal:
                for target, wanted in wanted_by_target.values():
                    removed = self._remove_unused(target, wanted)
                    if removed:
                        logger.info("[%s] %s: удалено ключей %d", locale, path.name, removed)

            if tree != original or list(tree) != list(original):
                intents.append(WriteIntent(path=path, tree=tree, locale=locale,
                                           namespaces=list(namespaces)))
        return intents

    def _targets(self, tree: Dict, namespaces: List[str]) -> Tuple[Dict[str, Dict], bool]:
        """
        Поддеревья для записи каждого namespace.

        mergeNamespaces: tree[namespace]; старый плоский файл без обёрток
        namespace дополняется в корне, удаление ключей в нём не выполняется.
        """
        if not self.store.merge_namespaces:
            return {ns: tree for ns in namespaces}, True

        legacy_flat = bool(tree) and not any(isinstance(v, dict) and k in namespaces
                                             for k, v in tree.items())
        if legacy_flat:
            logger.info("Плоский файл без namespace-обёрток: удаление ключей пропущено")
            return {ns: tree for ns in namespaces}, False

        targets = {}
        for namespace in namespaces:
            if not isinstance(tree.get(namespace), dict):
                tree[namespace] = {}
            targets[namespace] = tree[namespace]
        return targets, True

    def _keys_resolved_via_fallback(self, status: LocaleStatus) -> Set[str]:
        fallback_ns = self.config.extract.fallback_ns
        if not fallback_ns:
            return set()
        return {
            detail.key
            for namespace, ns_status in status.namespaces.items()
            if namespace != fallback_ns
            for detail in ns_status.key_details
            if detail.resolved_namespace == fallback_ns
        }

    def _expected_keys(self, locale: str,
                       keys: List[ExtractedKey]) -> "OrderedDict[str, Optional[str]]":
        expected: "OrderedDict[str, Optional[str]]" = OrderedDict()
        for extracted in keys:
            for key in self.engine.expand_key(extracted, locale):
                expected.setdefault(key, extracted.default_value)
        return expected

    def _sync_namespace(self, locale: str, namespace: str, target: Dict,
                        expected: "OrderedDict[str, Optional[str]]",
                        ns_status: Optional[NamespaceStatus]) -> _NamespaceChanges:
        changes = _NamespaceChanges()
        is_primary = locale == self.config.primary_language
        fill_value = self.config.extract.default_value
        synced = self._synced.get(namespace, set()) if self.sync_all else set()
        resolved = {}
        if ns_status is not None:
            resolved = {d.key: d.resolved_namespace for d in ns_status.key_details}

        for key, default_value in expected.items():
            current = get_nested_value(target, key, self.separator)

            if current is None:
                if resolved.get(key) not in (None, namespace):
                    continue  # значение берётся из fallbackNS
                value = default_value if (is_primary and default_value) else fill_value
                if set_nested_value(target, key, value, self.separator):
                    changes.added += 1
                else:
                    logger.warning("[%s/%s] конфликт структуры для ключа %s", locale, namespace, key)
                continue

            if (is_primary and self.sync_primary and default_value
                    and isinstance(current, str) and current != default_value):
                set_nested_value(target, key, default_value, self.separator)
                self._synced.setdefault(namespace, set()).add(key)
                changes.updated += 1
                continue

            if (not is_primary and key in synced
                    and isinstance(current, str) and current != fill_value):
                set_nested_value(target, key, fill_value, self.separator)
                changes.cleared += 1

        return changes

    def _remove_unused(self, target: Dict, wanted: Set[str]) -> int:
        removed = 0
        for path, _ in list(iter_leaf_paths(target, self.separator)):
            if path not in wanted and delete_nested_value(target, path, self.separator):
                removed += 1
        return removed


def plan_sync(config: ToolkitConfig, keys_by_namespace: KeysByNamespace,
              engine: ReconciliationEngine, report: Optional[StatusReport] = None,
              sync_primary: bool = False, sync_all: bool = False) -> List[WriteIntent]:
    """Планирует запись файлов переводов."""
    planner = SyncPlanner(config, engine, sync_primary=sync_primary, sync_all=sync_all)
    return planner.plan(keys_by_namespace, report)


def apply_sync(intents: List[WriteIntent], writer: Optional[TranslationWriter] = None,
               dry_run: bool = False) -> int:
    """
    Применяет намерения записи.

    Returns:
        Количество записанных (или, при dry_run, изменяемых) файлов
    """
    if dry_run:
        for intent in intents:
            logger.info("[dry-run] %s", intent.path)
        return len(intents)
    return (writer or TranslationWriter()).write_all(intents)
