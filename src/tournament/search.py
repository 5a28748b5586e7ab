import unicodedata
from datetime import date, datetime, time, timezone
from typing import Iterable, List, Optional

from tournament.exceptions import ValidationError
from tournament.models import (
    Tournament, TournamentFormat, TournamentStatus, extract_timestamp_from_id,
)

# Letters that do not decompose into a base letter plus a combining accent.
SPECIAL_LETTERS = str.maketrans({
    "Ł": "L", "ł": "l",
    "Ø": "O", "ø": "o",
    "Đ": "D", "đ": "d",
    "Þ": "Th", "þ": "th",
    "ß": "ss",
    "Æ": "AE", "æ": "ae",
    "Œ": "OE", "œ": "oe",
})


def normalize_text(text: str) -> str:
    """Lowercase ``text`` and strip accents, so "Łukasz" and "lukasz" compare equal."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.translate(SPECIAL_LETTERS).lower()


def tournament_date(tournament: Tournament) -> datetime:
    """Creation time encoded in the id, falling back to ``created_at``."""
    try:
        return extract_timestamp_from_id(tournament.id)
    except ValidationError:
        return tournament.created_at


def matches_query(tournament: Tournament, query: str) -> bool:
    """Every word of ``query`` must appear in the tournament name or a player name."""
    words = normalize_text(query).split()
    if not words:
        return True
    haystacks = [normalize_text(tournament.name)]
    haystacks += [normalize_text(p.name) for p in tournament.players]
    return all(any(word in text for text in haystacks) for word in words)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def filter_tournaments(
    tournaments: Iterable[Tournament],
    query: str = "",
    tournament_format: Optional[TournamentFormat] = None,
    status: Optional[TournamentStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Tournament]:
    """Keep the tournaments that pass every given filter; both date bounds are inclusive days."""
    start = datetime.combine(date_from, time.min, timezone.utc) if date_from else None
    end = datetime.combine(date_to, time.max, timezone.utc) if date_to else None

    result = []
    for t in tournaments:
        if tournament_format and t.format is not tournament_format:
            continue
        if status and t.status is not status:
            continue
        if start or end:
            when = _as_utc(tournament_date(t))
            if start and when < start:
                continue
            if end and when > end:
                continue
        if query and not matches_query(t, query):
            continue
        result.append(t)
    return result
