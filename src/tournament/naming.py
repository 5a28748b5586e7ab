from datetime import datetime
from typing import Iterable, Optional

from config import ORDINAL_SUFFIX_LANGUAGES
from locales.provider import LocaleProvider
from logger import setup_logger
from tournament.models import TournamentFormat, parse_format

logger = setup_logger(__name__)

# Format names are proper nouns and stay untranslated in every language.
TYPE_LABELS = {
    TournamentFormat.AMERICANO: "Americano",
    TournamentFormat.MEXICANO: "Mexicano",
}


def type_label(event_type) -> str:
    return TYPE_LABELS[parse_format(event_type)]


def english_ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def generate_tournament_name(
    event_type,
    locale: LocaleProvider,
    now: Optional[datetime] = None,
    ordinal_languages: Optional[Iterable[str]] = None,
) -> str:
    """
    Build the default title of a new tournament, e.g. "Americano Wednesday, March 3rd".

    Weekday and month names come from ``locale``; the ordinal suffix is only
    added when the locale's language is in ``ordinal_languages`` (by default
    the configured ORDINAL_SUFFIX_LANGUAGES, i.e. just "en").
    Raises InvalidInput for an unknown event type and lets
    LocaleResolutionError from the locale propagate.
    """
    label = type_label(event_type)
    now = now or datetime.now()
    if ordinal_languages is None:
        ordinal_languages = ORDINAL_SUFFIX_LANGUAGES
    elif isinstance(ordinal_languages, str):
        ordinal_languages = {ordinal_languages}

    # datetime.weekday() counts from Monday; the locale tables count from Sunday.
    weekday = locale.translate_weekday((now.weekday() + 1) % 7)
    month = locale.translate_month(now.month - 1)
    language = locale.current_language_code()

    suffix = english_ordinal_suffix(now.day) if language in ordinal_languages else ""
    name = f"{label} {weekday}, {month} {now.day}{suffix}"
    logger.debug(f"Generated tournament name {name!r} for language {language!r}")
    return name
