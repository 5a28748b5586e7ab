from typing import Dict, List, Optional, Protocol

from config import DEFAULT_LANGUAGE
from locales.translations import TRANSLATIONS
from tournament.exceptions import LocaleResolutionError


class LocaleProvider(Protocol):
    """The three locale facts the tournament-name generator needs."""

    def translate_month(self, index: int) -> str: ...

    def translate_weekday(self, index: int) -> str: ...

    def current_language_code(self) -> str: ...


class TranslationLocaleProvider:
    """LocaleProvider backed by static translation tables.

    The tables are never written to, so one provider can be shared between
    concurrent requests.
    """

    def __init__(self, language: str, tables: Optional[Dict[str, dict]] = None):
        tables = TRANSLATIONS if tables is None else tables
        if language not in tables:
            raise LocaleResolutionError(f"No translations for language {language!r}")
        self.language = language
        self._table = tables[language]

    def _lookup(self, section: str, index: int) -> str:
        try:
            return self._table[section][index]
        except (KeyError, TypeError):
            raise LocaleResolutionError(
                f"Missing '{section}.{index}' translation for {self.language!r}"
            ) from None

    def translate_month(self, index: int) -> str:
        return self._lookup("months", index)

    def translate_weekday(self, index: int) -> str:
        return self._lookup("weekdays", index)

    def current_language_code(self) -> str:
        return self.language


def available_languages() -> List[str]:
    return sorted(TRANSLATIONS)


def get_locale_provider(language: Optional[str] = None) -> TranslationLocaleProvider:
    return TranslationLocaleProvider(language or DEFAULT_LANGUAGE)
