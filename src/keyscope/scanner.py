"""
Scanner - источники кандидатов в ключи перевода.

Полноценный AST-разбор JS/TS вне задач keyscope: сюда подключается
любой объект с методом scan(), возвращающий KeyCandidate или словари
{key, namespace?, hasCount?, isOrdinal?, defaultValue?}.

Встроенные источники:
- RegexSourceScanner: regex-проход по вызовам t('key', {...})
- JsonCandidateSource: готовый список кандидатов из JSON-файла
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from .errors import ScanError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyCandidate:
    """Сырой кандидат в ключ от сканера."""
    key: str
    namespace: Optional[str] = None
    has_count: bool = False
    is_ordinal: bool = False
    default_value: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "KeyCandidate":
        """
        Валидирует словарь от внешнего сканера.

        Принимает camelCase (hasCount) и snake_case (has_count) поля.
        """
        key = data.get("key")
        if not isinstance(key, str) or not key.strip():
            raise ScanError(f"Кандидат без ключа: {dict(data)!r}")

        namespace = data.get("namespace", data.get("ns"))
        default_value = data.get("defaultValue", data.get("default_value"))
        return cls(
            key=key,
            namespace=namespace if isinstance(namespace, str) and namespace else None,
            has_count=bool(data.get("hasCount", data.get("has_count", False))),
            is_ordinal=bool(data.get("isOrdinal", data.get("is_ordinal", False))),
            default_value=default_value if isinstance(default_value, str) else None,
        )


def coerce_candidate(item: Any) -> KeyCandidate:
    """Приводит элемент от сканера к KeyCandidate."""
    if isinstance(item, KeyCandidate):
        return item
    if isinstance(item, Mapping):
        return KeyCandidate.from_mapping(item)
    if isinstance(item, str):
        return KeyCandidate(key=item)
    raise ScanError(f"Неподдерживаемый тип кандидата: {type(item).__name__}")


def expand_braces(pattern: str) -> List[str]:
    """Раскрывает {a,b} в glob-шаблоне: "*.{ts,tsx}" -> ["*.ts", "*.tsx"]."""
    match = re.search(r"\{([^{}]*,[^{}]*)\}", pattern)
    if not match:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    result = []
    for option in match.group(1).split(","):
        result.extend(expand_braces(f"{head}{option}{tail}"))
    return result


class RegexSourceScanner:
    """
    Regex-сканер вызовов функций перевода.

    Распознаёт:
        t('key')
        t('ns:key', 'Default value')
        t('items', { count: n, ordinal: true, ns: 'common', defaultValue: '...' })
    """

    _STRING = r"""(?P<q>['"`])(?P<key>(?:(?!(?P=q)).)+)(?P=q)"""

    def __init__(self, root: Path, patterns: Iterable[str],
                 functions: Iterable[str] = ("t", "i18next.t"),
                 exclude_dirs: Optional[List[str]] = None):
        self.root = Path(root)
        self.patterns = list(patterns)
        self.exclude_dirs = exclude_dirs or ["node_modules", ".git", "dist", "build"]
        names = "|".join(re.escape(fn) for fn in sorted(functions, key=len, reverse=True))
        self._call_re = re.compile(
            rf"(?<![\w$.])(?:{names})\(\s*{self._STRING}\s*(?:,\s*(?P<arg>\{{[^{{}}]*\}}|'[^']*'|\"[^\"]*\"))?",
            re.S,
        )

    def scan(self) -> List[KeyCandidate]:
        """Сканирует файлы по шаблонам extract.input."""
        candidates: List[KeyCandidate] = []
        for file_path in self._find_files():
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ScanError(f"Ошибка чтения {file_path}: {e}") from e
            candidates.extend(self.scan_source(content))
        logger.info("Найдено вызовов перевода: %d", len(candidates))
        return candidates

    def scan_source(self, content: str) -> List[KeyCandidate]:
        """Извлекает кандидатов из текста одного файла."""
        result = []
        for match in self._call_re.finditer(content):
            if match.group("q") == "`" and "${" in match.group("key"):
                # Динамический ключ - статически не определить
                continue
            result.append(self._candidate_from_match(match))
        return result

    def _candidate_from_match(self, match: "re.Match") -> KeyCandidate:
        key = match.group("key")
        arg = match.group("arg") or ""

        if arg[:1] in ("'", '"'):
            return KeyCandidate(key=key, default_value=arg[1:-1])

        ns_match = re.search(r"\bns\s*:\s*['\"]([^'\"]+)['\"]", arg)
        default_match = re.search(r"\bdefaultValue\s*:\s*(['\"])(.*?)\1", arg)
        # Опции ищутся только среди ключей объекта, не внутри строк
        bare = re.sub(r"(['\"`])(?:(?!\1).)*\1", "''", arg)
        return KeyCandidate(
            key=key,
            namespace=ns_match.group(1) if ns_match else None,
            has_count=bool(re.search(r"\bcount\s*[:,}]", bare)),
            is_ordinal=bool(re.search(r"\bordinal\s*:\s*true\b", bare)),
            default_value=default_match.group(2) if default_match else None,
        )

    def _find_files(self) -> List[Path]:
        files = set()
        for pattern in self.patterns:
            for expanded in expand_braces(pattern):
                for path in self.root.glob(expanded):
                    if not path.is_file():
                        continue
                    parts = path.relative_to(self.root).parts
                    if any(exc in parts for exc in self.exclude_dirs):
                        continue
                    files.add(path)
        return sorted(files)


class JsonCandidateSource:
    """Кандидаты из JSON: список объектов или {"keys": [...]}."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def scan(self) -> List[KeyCandidate]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ScanError(f"Не удалось загрузить кандидатов из {self.path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("keys", [])
        if not isinstance(data, list):
            raise ScanError(f"{self.path}: ожидается список кандидатов")
        return [coerce_candidate(item) for item in data]
