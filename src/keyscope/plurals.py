"""
Plurals - категории множественного числа по правилам CLDR (через Babel).

Для каждой локали возвращает упорядоченный набор категорий
(zero, one, two, few, many, other). Неизвестная или некорректная
локаль не роняет запуск: используются категории локали по умолчанию.
"""

import logging
from typing import Dict, Optional, Tuple

from babel import Locale, UnknownLocaleError

from .errors import LocaleDataError

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"
ORDINAL_MARKER = "ordinal"

# Канонический порядок категорий CLDR
PLURAL_CATEGORIES = ("zero", "one", "two", "few", "many", "other")


class PluralResolver:
    """
    Резолвер категорий множественного числа.

    Экземпляр живёт один запуск: мемоизация хранится на объекте,
    повторные запуски (watch) создают новый резолвер.
    """

    def __init__(self, default_locale: str = DEFAULT_LOCALE):
        self.default_locale = default_locale
        self._cache: Dict[Tuple[str, bool], Tuple[str, ...]] = {}

    def resolve(self, locale: str, is_ordinal: bool = False) -> Tuple[str, ...]:
        """
        Возвращает категории для локали.

        Args:
            locale: Код локали (de, en-US, pt_BR ...)
            is_ordinal: Порядковые (1st, 2nd) вместо количественных

        Returns:
            Непустой кортеж категорий в порядке CLDR
        """
        cache_key = (locale, bool(is_ordinal))
        if cache_key not in self._cache:
            try:
                categories = self._categories_for(locale, is_ordinal)
            except LocaleDataError as exc:
                logger.debug("%s; используется '%s'", exc, self.default_locale)
                categories = self._categories_for(self.default_locale, is_ordinal)
            self._cache[cache_key] = categories
        return self._cache[cache_key]

    def _categories_for(self, locale: str, is_ordinal: bool) -> Tuple[str, ...]:
        identifier = str(locale).replace("-", "_")
        try:
            parsed = Locale.parse(identifier)
        except (UnknownLocaleError, ValueError, TypeError) as exc:
            # ru_XX -> ru: правила задаются языком, регион их не меняет
            language = identifier.split("_", 1)[0]
            if language and language != identifier:
                logger.debug("Локаль '%s' не найдена, пробуем '%s'", locale, language)
                return self._categories_for(language, is_ordinal)
            raise LocaleDataError(f"Нет правил множественного числа для '{locale}': {exc}")

        rule = parsed.ordinal_form if is_ordinal else parsed.plural_form
        tags = set(rule.tags) | {"other"}
        return tuple(c for c in PLURAL_CATEGORIES if c in tags)


def split_plural_suffix(key: str, separator: str = "_") -> Optional[Tuple[str, str, bool]]:
    """
    Разбирает ключ с явным суффиксом категории.

    "item_one" -> ("item", "one", False)
    "place_ordinal_few" -> ("place", "few", True)

    Returns:
        (base, category, is_ordinal) или None если суффикса нет
    """
    if not separator:
        return None
    parts = key.split(separator)
    if len(parts) < 2 or parts[-1] not in PLURAL_CATEGORIES:
        return None

    category = parts[-1]
    if len(parts) >= 3 and parts[-2] == ORDINAL_MARKER:
        return separator.join(parts[:-2]), category, True
    return separator.join(parts[:-1]), category, False
