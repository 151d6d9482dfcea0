#!/usr/bin/env python3
"""
Manager - CLI keyscope.

Команды:
  status     Состояние переводов (сводка / namespace / ключи локали)
  sync       Синхронизация файлов переводов с ключами из кода

Использование:
  keyscope status
  keyscope status de --hide-translated
  keyscope status -n common
  keyscope sync --dry-run
  keyscope sync --sync-all
  python -m keyscope.manager status --config keyscope.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import ToolkitConfig, detect_config, find_config, load_config
from .errors import ConfigError, ScanError
from .extraction import extract_keys, group_by_namespace
from .plurals import PluralResolver
from .reconcile import ReconciliationEngine, StatusReport
from .report import StatusOptions, display_status_report
from .scanner import JsonCandidateSource, RegexSourceScanner
from .store import TranslationStore, TranslationWriter
from .syncer import apply_sync, plan_sync

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISSING = 1
EXIT_FATAL = 2


def resolve_config(args, console: Console) -> ToolkitConfig:
    """Загружает конфиг из --config, из корня проекта или определяет структуру."""
    root = Path(args.project_root)
    if args.config:
        return load_config(Path(args.config))

    found = find_config(root)
    if found:
        return load_config(found)

    console.print("Файл конфигурации не найден. Определяем структуру проекта...", style="blue")
    config = detect_config(root)
    console.print("Структура проекта определена.", style="green")
    return config


def build_scanner(args, config: ToolkitConfig):
    """Источник кандидатов: --candidates или regex-сканер исходников."""
    if getattr(args, "candidates", None):
        return JsonCandidateSource(Path(args.candidates))
    return RegexSourceScanner(Path(args.project_root), config.extract.input,
                              functions=config.extract.functions)


def _prepare(args, console: Console):
    """Общая часть status/sync: конфиг, ключи, движок сверки."""
    config = resolve_config(args, console).resolve_languages()
    keys = extract_keys(build_scanner(args, config), config)
    keys_by_namespace = group_by_namespace(keys, config.extract.ignore_namespaces)

    store = TranslationStore(config, Path(args.project_root))
    engine = ReconciliationEngine(config, store, PluralResolver())
    return config, keys_by_namespace, engine


def cmd_status(args, console: Console) -> int:
    """Команда: состояние переводов."""
    with console.status("Анализ состояния локализации проекта..."):
        config, keys_by_namespace, engine = _prepare(args, console)
        report: StatusReport = engine.compute(keys_by_namespace)

    if args.json:
        console.print_json(report.to_json())
    else:
        console.print("✔ Анализ завершён.", style="green")
        display_status_report(
            report, config,
            StatusOptions(detail=args.locale, namespace=args.namespace,
                          hide_translated=args.hide_translated),
            console,
        )

    if report.has_missing_translations:
        console.print("\n✖ Обнаружены непереведённые ключи.", style="bold red")
        return EXIT_MISSING
    return EXIT_OK


def cmd_sync(args, console: Console) -> int:
    """Команда: синхронизация файлов переводов."""
    config, keys_by_namespace, engine = _prepare(args, console)
    report = engine.compute(keys_by_namespace)
    intents = plan_sync(config, keys_by_namespace, engine, report,
                        sync_primary=args.sync_primary, sync_all=args.sync_all)

    written = apply_sync(intents, TranslationWriter(), dry_run=args.dry_run)

    if not args.quiet:
        if not intents:
            console.print("✔ Файлы переводов актуальны.", style="green")
        for intent in intents:
            mark = "~" if args.dry_run else "✔"
            console.print(f"  {mark} {intent.path}", markup=False)
        if args.dry_run:
            console.print(f"\n[dry-run] Файлов к обновлению: {written}", style="yellow", markup=False)
        else:
            console.print(f"\nОбновлено файлов: {written}", style="bold")

    if args.ci and intents:
        console.print("✖ Файлы переводов устарели (--ci).", style="bold red")
        return EXIT_MISSING
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Создаёт парсер аргументов CLI."""
    parser = argparse.ArgumentParser(
        prog="keyscope",
        description="Сверка ключей перевода из кода с файлами локалей",
    )
    parser.add_argument("-c", "--config", default=None,
                        help="Путь к файлу конфигурации (keyscope.yaml)")
    parser.add_argument("--project-root", default=".", help="Корень проекта")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Подробный лог (DEBUG)")

    subparsers = parser.add_subparsers(dest="command", help="Команды")

    # === status ===
    p_status = subparsers.add_parser(
        "status", help="Состояние переводов; с локалью - детальный отчёт по ключам")
    p_status.add_argument("locale", nargs="?", default=None,
                          help="Локаль для детального отчёта")
    p_status.add_argument("-n", "--namespace", default=None,
                          help="Фильтр по namespace")
    p_status.add_argument("--hide-translated", action="store_true",
                          help="Скрыть переведённые ключи в детальном отчёте")
    p_status.add_argument("--json", action="store_true",
                          help="Вывести отчёт в JSON")
    p_status.add_argument("--candidates", default=None,
                          help="JSON-файл с готовым списком ключей вместо сканирования")

    # === sync ===
    p_sync = subparsers.add_parser("sync", help="Синхронизировать файлы переводов")
    p_sync.add_argument("--dry-run", action="store_true",
                        help="Только показать изменяемые файлы")
    p_sync.add_argument("--ci", action="store_true",
                        help="Код выхода 1, если файлы требуют обновления")
    p_sync.add_argument("--sync-primary", action="store_true",
                        help="Обновить значения основного языка из кода")
    p_sync.add_argument("--sync-all", action="store_true",
                        help="Как --sync-primary, плюс сброс изменённых ключей в остальных локалях")
    p_sync.add_argument("-q", "--quiet", action="store_true", help="Без вывода")
    p_sync.add_argument("--candidates", default=None,
                        help="JSON-файл с готовым списком ключей вместо сканирования")

    return parser


def main(argv: Optional[list] = None, console: Optional[Console] = None) -> int:
    """Точка входа CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return EXIT_FATAL

    console = console or Console()
    commands = {
        "status": cmd_status,
        "sync": cmd_sync,
    }

    try:
        return commands[args.command](args, console)
    except (ConfigError, ScanError) as e:
        console.print(f"Ошибка: {e}", style="bold red", markup=False)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
