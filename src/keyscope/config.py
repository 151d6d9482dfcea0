"""
Config - загрузка и валидация конфигурации keyscope.

Формат: YAML (или JSON) файл keyscope.yaml в корне проекта.

    locales: [en, de, fr]
    extract:
      input: ["src/**/*.{ts,tsx}"]
      output: "locales/{{language}}/{{namespace}}.json"
      defaultNS: translation
      fallbackNS: common
      ignoreNamespaces: [legacy]

Схема проверяется через jsonschema, ошибки -> ConfigError.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("keyscope.yaml", "keyscope.yml", "keyscope.json")
DEFAULT_NAMESPACE = "translation"
DEFAULT_OUTPUT = "locales/{{language}}/{{namespace}}.json"
DEFAULT_INPUT = ["src/**/*.{js,jsx,ts,tsx}"]
DETECT_LOCALE_DIRS = ("locales", "public/locales", "src/locales")

_SEPARATOR = {"anyOf": [{"type": "string"}, {"const": False}]}

CONFIG_SCHEMA = {
    "type": "object",
    "required": ["locales"],
    "properties": {
        "locales": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "extract": {
            "type": "object",
            "properties": {
                "input": {
                    "anyOf": [
                        {"type": "string"},
                        {"type": "array", "items": {"type": "string"}},
                    ]
                },
                "output": {"type": "string", "minLength": 1},
                "primaryLanguage": {"type": "string"},
                "secondaryLanguages": {"type": "array", "items": {"type": "string"}},
                "keySeparator": _SEPARATOR,
                "nsSeparator": _SEPARATOR,
                "pluralSeparator": {"type": "string", "minLength": 1},
                "defaultNS": _SEPARATOR,
                "mergeNamespaces": {"type": "boolean"},
                "fallbackNS": {"type": ["string", "null"]},
                "ignoreNamespaces": {"type": "array", "items": {"type": "string"}},
                "defaultValue": {"type": "string"},
                "removeUnusedKeys": {"type": "boolean"},
                "functions": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
}


@dataclass
class ExtractConfig:
    """Секция extract."""
    input: List[str] = field(default_factory=lambda: list(DEFAULT_INPUT))
    output: str = DEFAULT_OUTPUT
    primary_language: Optional[str] = None
    secondary_languages: Optional[List[str]] = None
    key_separator: Union[str, bool] = "."
    ns_separator: Union[str, bool] = ":"
    plural_separator: str = "_"
    default_ns: Union[str, bool] = DEFAULT_NAMESPACE
    merge_namespaces: bool = False
    fallback_ns: Optional[str] = None
    ignore_namespaces: List[str] = field(default_factory=list)
    default_value: str = ""
    remove_unused_keys: bool = True
    functions: List[str] = field(default_factory=lambda: ["t", "i18next.t"])

    @property
    def namespace_for_missing(self) -> str:
        """Namespace для ключей без явного namespace."""
        return self.default_ns or DEFAULT_NAMESPACE


@dataclass
class ToolkitConfig:
    """Полная конфигурация проекта."""
    locales: List[str] = field(default_factory=list)
    extract: ExtractConfig = field(default_factory=ExtractConfig)

    def resolve_languages(self) -> "ToolkitConfig":
        """
        Заполняет основной и дополнительные языки.

        Raises:
            ConfigError: если локали не заданы
        """
        if not self.locales:
            raise ConfigError("В конфигурации не задано ни одной локали (locales)")

        if not self.extract.primary_language:
            self.extract.primary_language = self.locales[0]
        if self.extract.secondary_languages is None:
            self.extract.secondary_languages = [
                loc for loc in self.locales if loc != self.extract.primary_language
            ]
        return self

    @property
    def primary_language(self) -> str:
        return self.extract.primary_language or (self.locales[0] if self.locales else "")

    @property
    def secondary_languages(self) -> List[str]:
        if self.extract.secondary_languages is not None:
            return list(self.extract.secondary_languages)
        return [loc for loc in self.locales if loc != self.primary_language]


# Отображение ключей файла -> полей ExtractConfig
_EXTRACT_FIELDS = {
    "input": "input",
    "output": "output",
    "primaryLanguage": "primary_language",
    "secondaryLanguages": "secondary_languages",
    "keySeparator": "key_separator",
    "nsSeparator": "ns_separator",
    "pluralSeparator": "plural_separator",
    "defaultNS": "default_ns",
    "mergeNamespaces": "merge_namespaces",
    "fallbackNS": "fallback_ns",
    "ignoreNamespaces": "ignore_namespaces",
    "defaultValue": "default_value",
    "removeUnusedKeys": "remove_unused_keys",
    "functions": "functions",
}


def config_from_dict(data: Dict[str, Any]) -> ToolkitConfig:
    """
    Строит ToolkitConfig из словаря (после yaml/json).

    Raises:
        ConfigError: при нарушении схемы
    """
    try:
        jsonschema.validate(data, CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"Ошибка конфигурации в '{location}': {e.message}") from e

    extract_data = copy.deepcopy(data.get("extract") or {})
    kwargs = {}
    for file_key, attr in _EXTRACT_FIELDS.items():
        if file_key in extract_data:
            kwargs[attr] = extract_data[file_key]
    if isinstance(kwargs.get("input"), str):
        kwargs["input"] = [kwargs["input"]]

    return ToolkitConfig(
        locales=list(data.get("locales") or []),
        extract=ExtractConfig(**kwargs),
    )


def find_config(root: Path) -> Optional[Path]:
    """Ищет файл конфигурации в корне проекта."""
    for name in CONFIG_FILENAMES:
        candidate = Path(root) / name
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path) -> ToolkitConfig:
    """
    Загружает конфигурацию из YAML/JSON файла.

    Args:
        path: Путь к файлу

    Returns:
        Провалидированный ToolkitConfig
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Файл конфигурации не найден: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Не удалось разобрать {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Конфигурация {path} должна быть объектом")

    logger.info("Конфигурация загружена из %s", path)
    return config_from_dict(data)


def detect_config(root: Path) -> ToolkitConfig:
    """
    Определяет структуру проекта без файла конфигурации.

    Ищет каталог локалей вида locales/<lang>/<namespace>.json.

    Raises:
        ConfigError: если структура не распознана
    """
    root = Path(root)
    for rel_dir in DETECT_LOCALE_DIRS:
        locales_dir = root / rel_dir
        if not locales_dir.is_dir():
            continue

        locales = sorted(
            p.name for p in locales_dir.iterdir()
            if p.is_dir() and any(p.glob("*.json"))
        )
        if not locales:
            continue

        # Английский обычно основной - ставим его первым
        if "en" in locales:
            locales.remove("en")
            locales.insert(0, "en")

        logger.info("Обнаружены локали в %s: %s", locales_dir, ", ".join(locales))
        return ToolkitConfig(
            locales=locales,
            extract=ExtractConfig(output=f"{rel_dir}/{{{{language}}}}/{{{{namespace}}}}.json"),
        )

    raise ConfigError(
        f"Не удалось определить структуру проекта в {root}. "
        f"Создайте {CONFIG_FILENAMES[0]}"
    )
