from datetime import date, datetime, timezone

import pytest

from tournament.models import Player, Tournament, TournamentFormat, TournamentStatus
from tournament.search import filter_tournaments, matches_query, normalize_text, tournament_date


@pytest.mark.parametrize("text, expected", [
    ("Łukasz", "lukasz"),
    ("Zoë", "zoe"),
    ("Gießen", "giessen"),
    ("Ørsted", "orsted"),
    ("Æsir Œuvre", "aesir oeuvre"),
    ("Þór", "thor"),
    ("Đorđe", "dorde"),
    ("MÜLLER", "muller"),
])
def test_normalize_text(text, expected):
    assert normalize_text(text) == expected


@pytest.fixture
def cups():
    winter = Tournament(
        id="000uhabcd", name="Winter Cup", format="americano",
        players=[Player("p1", "Łukasz"), Player("p2", "Anna")],
    )
    spring = Tournament(
        id="s1", name="Spring Mexicano", format="mexicano",
        players=[Player("p1", "Anna"), Player("p2", "Zoë")],
        created_at=datetime(2025, 4, 10, 9, tzinfo=timezone.utc),
    )
    spring.start()
    return [winter, spring]


def test_date_comes_from_id(cups):
    winter, spring = cups
    assert tournament_date(winter) == datetime(2025, 2, 15, 17, tzinfo=timezone.utc)
    assert tournament_date(spring) == spring.created_at


def test_query_words_must_all_match(cups):
    winter, spring = cups
    assert matches_query(winter, "LUKASZ winter")
    assert matches_query(spring, "anna zoe")
    assert not matches_query(winter, "anna zoe")
    assert matches_query(winter, "   ")


def test_filters(cups):
    def ids(**filters):
        return [t.id for t in filter_tournaments(cups, **filters)]

    assert ids() == ["000uhabcd", "s1"]
    assert ids(query="anna") == ["000uhabcd", "s1"]
    assert ids(tournament_format=TournamentFormat.MEXICANO) == ["s1"]
    assert ids(status=TournamentStatus.SETUP) == ["000uhabcd"]
    assert ids(date_from=date(2025, 4, 10)) == ["s1"]
    assert ids(date_to=date(2025, 2, 15)) == ["000uhabcd"]
    assert ids(date_from=date(2025, 2, 16), date_to=date(2025, 4, 9)) == []
