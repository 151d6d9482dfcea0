"""
Report - вывод отчёта о состоянии переводов в консоль (rich).

Режимы:
- detail: ключи одной локали с отметками ✓/✗ и прогрессом
- namespace: прогресс одного namespace по всем локалям
- overall: сводка по всем локалям (по умолчанию)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.text import Text

from .config import ToolkitConfig
from .errors import UserInputError
from .reconcile import StatusReport

logger = logging.getLogger(__name__)

BAR_WIDTH = 20
FILLED = "■"
EMPTY = "□"


@dataclass
class StatusOptions:
    """Параметры отображения отчёта."""
    detail: Optional[str] = None
    namespace: Optional[str] = None
    hide_translated: bool = False


def percentage(current: int, total: int) -> int:
    """Процент с округлением половины вверх; 100% при пустом наборе."""
    if total <= 0:
        return 100
    return (current * 200 + total) // (total * 2)


def progress_bar(percent: int) -> Text:
    """Полоса [■■■□□□] на BAR_WIDTH делений."""
    filled = percent * BAR_WIDTH // 100
    return Text.assemble(
        "[", (FILLED * filled, "green"), EMPTY * (BAR_WIDTH - filled), "]"
    )


def progress_line(label: str, current: int, total: int, label_style: str = "bold") -> Text:
    """Строка вида "Label: [■■□□] 50% (1/2)"."""
    percent = percentage(current, total)
    return Text.assemble(
        (label, label_style), ": ", progress_bar(percent), f" {percent}% ({current}/{total})"
    )


def display_status_report(report: StatusReport, config: ToolkitConfig,
                          options: Optional[StatusOptions] = None,
                          console: Optional[Console] = None) -> bool:
    """
    Выводит отчёт в выбранном режиме.

    Ошибки пользовательского ввода (неизвестная локаль/namespace)
    выводятся и не прерывают запуск.

    Returns:
        False если запрос отчёта был некорректным
    """
    options = options or StatusOptions()
    console = console or Console()

    try:
        if options.detail:
            display_locale_detail(report, config, options.detail,
                                  options.namespace, options.hide_translated, console)
        elif options.namespace:
            display_namespace_summary(report, options.namespace, console)
        else:
            display_overall_summary(report, config, console)
    except UserInputError as e:
        logger.debug("Некорректный запрос отчёта: %s", e)
        console.print(Text(f"Ошибка: {e}", style="red"))
        return False
    return True


def display_locale_detail(report: StatusReport, config: ToolkitConfig, locale: str,
                          namespace_filter: Optional[str] = None,
                          hide_translated: bool = False,
                          console: Optional[Console] = None):
    """Детальный отчёт по ключам одной локали."""
    console = console or Console()

    if locale == config.primary_language:
        console.print(Text(
            f'Локаль "{locale}" - основной язык. Все ключи считаются переведёнными.',
            style="yellow",
        ))
        return
    if locale not in config.locales:
        raise UserInputError(f'локаль "{locale}" не задана в конфигурации')

    locale_data = report.locales.get(locale)
    if locale_data is None:
        raise UserInputError(f'локаль "{locale}" не является дополнительным языком')
    if namespace_filter and namespace_filter not in report.keys_by_namespace:
        raise UserInputError(f'namespace "{namespace_filter}" не найден в исходном коде')

    console.print()
    console.print(Text.assemble(("Статус ключей для ", "bold"), (locale, "bold cyan"), ":"))
    console.print(progress_line("Всего", locale_data.total_translated, locale_data.total_keys))

    namespaces = [namespace_filter] if namespace_filter else sorted(locale_data.namespaces)
    for namespace in namespaces:
        ns_data = locale_data.namespaces.get(namespace)
        if ns_data is None:
            continue

        console.print()
        console.print(Text(f"Namespace: {namespace}", style="bold cyan"))
        console.print(progress_line("Прогресс namespace", ns_data.translated_keys, ns_data.total_keys))

        for detail in ns_data.key_details:
            if hide_translated and detail.is_translated:
                continue
            icon = Text("✓", style="green") if detail.is_translated else Text("✗", style="red")
            console.print(Text.assemble("  ", icon, " ", detail.key))

    missing = locale_data.missing_keys
    console.print()
    if missing > 0:
        console.print(Text(
            f'Итого: не переведено ключей для "{locale}": {missing}.', style="bold yellow"
        ))
    else:
        console.print(Text(
            f'Итого: 🎉 все ключи переведены для "{locale}".', style="bold green"
        ))


def display_namespace_summary(report: StatusReport, namespace: str,
                              console: Optional[Console] = None):
    """Прогресс одного namespace по всем локалям."""
    console = console or Console()

    if namespace not in report.keys_by_namespace:
        raise UserInputError(f'namespace "{namespace}" не найден в исходном коде')

    console.print()
    console.print(Text(f'Статус namespace "{namespace}"', style="bold cyan"))
    console.print("-" * 24)

    for locale, locale_data in report.locales.items():
        ns_data = locale_data.namespaces.get(namespace)
        if ns_data is None:
            continue
        console.print(_locale_line(locale, ns_data.translated_keys, ns_data.total_keys))


def display_overall_summary(report: StatusReport, config: ToolkitConfig,
                            console: Optional[Console] = None):
    """Сводка по проекту."""
    console = console or Console()

    console.print()
    console.print(Text("Состояние переводов проекта", style="bold cyan"))
    console.print("-" * 24)
    console.print(Text.assemble("🔑 Найдено ключей:     ", (str(report.total_base_keys), "bold")))
    console.print(Text.assemble("📚 Найдено namespace:  ", (str(len(report.keys_by_namespace)), "bold")))
    console.print(Text.assemble("🌍 Локали:             ", (", ".join(config.locales), "bold")))
    if config.primary_language:
        console.print(Text.assemble("✅ Основной язык:      ", (config.primary_language, "bold")))

    console.print()
    console.print("Прогресс перевода:")
    for locale, locale_data in report.locales.items():
        console.print(_locale_line(locale, locale_data.total_translated, locale_data.total_keys))


def _locale_line(locale: str, current: int, total: int) -> Text:
    percent = percentage(current, total)
    return Text.assemble(
        f"- {locale}: ", progress_bar(percent), f" {percent}% ({current}/{total} ключей)"
    )
