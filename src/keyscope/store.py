"""
Store - чтение и запись файлов переводов.

Структура файлов задаётся шаблоном extract.output:
    locales/{{language}}/{{namespace}}.json

В режиме mergeNamespaces все namespace локали живут в одном файле
(шаблон рендерится с defaultNS), namespace - ключ верхнего уровня.

Отсутствующий файл - пустое дерево (0% перевода), повреждённый файл -
тоже пустое дерево с предупреждением в лог.
"""

import json
import logging
import os
import stat
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .config import DEFAULT_NAMESPACE, ToolkitConfig
from .errors import FileReadError

logger = logging.getLogger(__name__)

_PLACEHOLDERS = {
    "language": ("{{language}}", "{{lng}}"),
    "namespace": ("{{namespace}}", "{{ns}}"),
}


@dataclass(frozen=True)
class LookupSource:
    """Дерево, в котором ищется значение ключа."""
    namespace: str
    tree: Dict


def render_output_path(template: str, locale: str, namespace: str) -> str:
    """Подставляет язык и namespace в шаблон пути."""
    result = template
    for placeholder in _PLACEHOLDERS["language"]:
        result = result.replace(placeholder, locale)
    for placeholder in _PLACEHOLDERS["namespace"]:
        result = result.replace(placeholder, namespace)
    return result


def read_tree(path: Path) -> Dict:
    """
    Читает JSON-дерево переводов.

    Returns:
        Словарь или {} если файла нет

    Raises:
        FileReadError: файл не разбирается или это не JSON-объект
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FileReadError(path, str(e)) from e

    if not isinstance(data, dict):
        raise FileReadError(path, f"ожидается объект, получен {type(data).__name__}")
    return data


class TranslationStore:
    """
    Хранилище деревьев переводов одного запуска.

    Кеш загруженных файлов живёт на экземпляре: каждый запуск
    создаёт новый store и видит актуальное состояние диска.
    """

    def __init__(self, config: ToolkitConfig, root: Path = Path(".")):
        self.config = config
        self.root = Path(root)
        self._cache: Dict[Path, Dict] = {}
        self._lock = threading.Lock()

    @property
    def merge_namespaces(self) -> bool:
        return self.config.extract.merge_namespaces

    @property
    def merged_file_namespace(self) -> str:
        """Namespace, которым рендерится общий файл в режиме mergeNamespaces."""
        return self.config.extract.default_ns or DEFAULT_NAMESPACE

    def output_path(self, locale: str, namespace: str) -> Path:
        """Путь к файлу переводов для (locale, namespace)."""
        if self.merge_namespaces:
            namespace = self.merged_file_namespace
        rendered = render_output_path(self.config.extract.output, locale, namespace)
        return (self.root / rendered).resolve()

    def load_file(self, path: Path) -> Dict:
        """Загружает файл с кешированием; ошибки чтения -> {}."""
        path = Path(path)
        with self._lock:
            if path in self._cache:
                return self._cache[path]

        try:
            tree = read_tree(path)
        except FileReadError as e:
            logger.warning("%s - файл считается пустым", e)
            tree = {}

        with self._lock:
            return self._cache.setdefault(path, tree)

    def load(self, locale: str, namespace: str) -> Dict:
        """
        Дерево переводов namespace.

        В режиме mergeNamespaces - поддерево tree[namespace], а если его нет,
        корень файла (старые плоские файлы без обёртки namespace).
        """
        tree = self.load_file(self.output_path(locale, namespace))
        if not self.merge_namespaces:
            return tree
        subtree = tree.get(namespace)
        return subtree if isinstance(subtree, dict) else tree

    def lookup_sources(self, locale: str, namespace: str) -> List[LookupSource]:
        """Упорядоченные источники поиска: свой namespace, затем fallbackNS."""
        sources = [LookupSource(namespace, self.load(locale, namespace))]
        fallback_ns = self.config.extract.fallback_ns
        if fallback_ns and fallback_ns != namespace:
            sources.append(LookupSource(fallback_ns, self.load(locale, fallback_ns)))
        return sources

    def preload(self, pairs: Iterable[Tuple[str, str]], max_workers: int = 4) -> int:
        """
        Параллельно прогревает кеш для пар (locale, namespace).

        Returns:
            Количество загруженных файлов
        """
        paths = sorted({self.output_path(locale, ns) for locale, ns in pairs})
        if not paths:
            return 0

        workers = max(1, min(len(paths), max_workers))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.load_file, path) for path in paths]
            for future in as_completed(futures):
                future.result()

        logger.debug("Загружено файлов переводов: %d", len(paths))
        return len(paths)


def _default_file_mode() -> int:
    """Права нового файла, как у open(): 0666 с учётом umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def serialize_tree(tree: Dict) -> str:
    """JSON с отступом 2, UTF-8 без экранирования, перевод строки в конце."""
    return json.dumps(tree, ensure_ascii=False, indent=2) + "\n"


class TranslationWriter:
    """
    Атомарная запись файлов переводов.

    Запись в один файл сериализуется блокировкой на путь:
    чтение-сравнение-запись не теряет обновления.
    """

    def __init__(self):
        self._locks: Dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()
        self._new_file_mode = _default_file_mode()

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(path, threading.Lock())

    def write(self, path: Path, tree: Dict) -> bool:
        """
        Записывает дерево, если содержимое изменилось.

        Returns:
            True если файл был записан
        """
        path = Path(path).resolve()
        content = serialize_tree(tree)

        with self._lock_for(path):
            if path.exists():
                try:
                    if path.read_text(encoding="utf-8") == content:
                        return False
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug("Не удалось сравнить с %s: %s", path, e)

            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                # mkstemp создаёт 0600: сохраняем права существующего файла
                os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode)
                         if path.exists() else self._new_file_mode)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

        logger.info("Записан %s", path)
        return True

    def write_all(self, intents: Iterable, max_workers: int = 4) -> int:
        """
        Применяет намерения записи параллельно.

        Returns:
            Количество записанных файлов
        """
        intents = list(intents)
        if not intents:
            return 0

        written = 0
        workers = max(1, min(len(intents), max_workers))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.write, i.path, i.tree) for i in intents]
            for future in as_completed(futures):
                if future.result():
                    written += 1
        return written
