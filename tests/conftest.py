import pytest

from tournament.models import Match, Player, Tournament


@pytest.fixture
def players():
    names = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Henry"]
    return [Player(id=f"p{i}", name=name) for i, name in enumerate(names, start=1)]


@pytest.fixture
def tournament(players):
    return Tournament(
        id="t1",
        name="Sunday Cup",
        format="americano",
        players=players,
        courts=2,
        points_per_game=24,
    )


def finished(mid, rnd, court, team1, team2, score1, score2):
    return Match(
        id=mid, round=rnd, court=court, team1=team1, team2=team2,
        score1=score1, score2=score2, status="finished",
    )


@pytest.fixture
def played(tournament):
    """Two rounds on two courts: round 1 finished, round 2 half played."""
    tournament.start()
    tournament.add_matches([
        finished("m1", 1, 1, ["p1", "p2"], ["p3", "p4"], 15, 9),
        finished("m2", 1, 2, ["p5", "p6"], ["p7", "p8"], 12, 12),
    ])
    tournament.advance_round()
    tournament.add_matches([
        finished("m3", 2, 1, ["p1", "p5"], ["p2", "p6"], 10, 14),
        Match(id="m4", round=2, court=2, team1=["p3", "p7"], team2=["p4", "p8"]),
    ])
    tournament.advance_round()
    return tournament
