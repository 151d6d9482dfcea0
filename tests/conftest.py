import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from keyscope.config import ExtractConfig, ToolkitConfig
from keyscope.plurals import PluralResolver
from keyscope.reconcile import ReconciliationEngine
from keyscope.store import TranslationStore


def write_json(root: Path, rel_path: str, data) -> Path:
    path = Path(root) / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def read_json(root: Path, rel_path: str):
    return json.loads((Path(root) / rel_path).read_text(encoding="utf-8"))


def make_config(locales=("en", "de"), **extract) -> ToolkitConfig:
    config = ToolkitConfig(locales=list(locales), extract=ExtractConfig(**extract))
    return config.resolve_languages()


class ListScanner:
    """Сканер-заглушка: отдаёт заранее заданных кандидатов."""

    def __init__(self, *candidates):
        self.candidates = list(candidates)

    def scan(self):
        return list(self.candidates)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def output(console):
    def _read():
        return console.file.getvalue()
    return _read


@pytest.fixture
def engine_for(tmp_path):
    def _build(config):
        store = TranslationStore(config, tmp_path)
        return ReconciliationEngine(config, store, PluralResolver())
    return _build
