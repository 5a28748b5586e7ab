import math
from dataclasses import dataclass, field
from typing import List, Optional

from logger import setup_logger
from tournament.exceptions import ValidationError
from tournament.models import Match, PlayerStanding, Tournament, TournamentStatus

logger = setup_logger(__name__)


def calculate_standings(tournament: Tournament) -> List[PlayerStanding]:
    """Aggregate finished matches into ranked standings (never stored)."""
    standings = {
        p.id: PlayerStanding(player_id=p.id, player_name=p.name)
        for p in tournament.players
    }
    for match in tournament.matches:
        if not match.is_finished:
            continue
        sides = (
            (match.team1, match.score1, match.score2),
            (match.team2, match.score2, match.score1),
        )
        for team, score_for, score_against in sides:
            for pid in team:
                s = standings[pid]
                s.games_played += 1
                s.points += score_for
                if score_for > score_against:
                    s.games_won += 1
                elif score_for == score_against:
                    s.games_drawn += 1
                else:
                    s.games_lost += 1

    ranked = sorted(
        standings.values(),
        key=lambda s: (-s.points, -s.games_won, -s.games_drawn, s.player_name.lower()),
    )
    for i, s in enumerate(ranked):
        s.rank = i + 1
    return ranked


# -- Round state ---------------------------------------------------------------

def get_total_rounds(tournament: Tournament) -> int:
    return tournament.max_round


def get_round_matches(tournament: Tournament, round_number: int) -> List[Match]:
    return [m for m in tournament.matches if m.round == round_number]


def is_round_complete(tournament: Tournament, round_number: int) -> bool:
    matches = get_round_matches(tournament, round_number)
    return bool(matches) and all(m.is_finished for m in matches)


def get_remaining_match_count(tournament: Tournament, round_number: int) -> int:
    return sum(1 for m in get_round_matches(tournament, round_number) if not m.is_finished)


def get_pausing_players(tournament: Tournament, round_number: int) -> List[str]:
    """Ids of players sitting out a round, in roster order."""
    matches = get_round_matches(tournament, round_number)
    if not matches:
        return []
    playing = {pid for m in matches for pid in m.player_ids}
    return [p.id for p in tournament.players if p.id not in playing]


def is_last_round(tournament: Tournament, round_number: int) -> bool:
    return round_number == get_total_rounds(tournament)


def has_no_scored_matches(tournament: Tournament, round_number: int) -> bool:
    matches = get_round_matches(tournament, round_number)
    return bool(matches) and not any(m.has_score for m in matches)


def can_generate_next_round(tournament: Tournament) -> bool:
    if tournament.status is TournamentStatus.FINISHED:
        return False
    total = get_total_rounds(tournament)
    if total == 0:
        return True
    return (
        is_last_round(tournament, tournament.current_round)
        and is_round_complete(tournament, tournament.current_round)
    )


def can_finish_tournament(tournament: Tournament) -> bool:
    if tournament.status is TournamentStatus.FINISHED:
        return False
    current = tournament.current_round
    if not is_last_round(tournament, current):
        return False
    if is_round_complete(tournament, current):
        return True
    # A freshly generated round nobody has played yet can be thrown away.
    return current >= 2 and has_no_scored_matches(tournament, current)


def finish_tournament(tournament: Tournament, remove_incomplete_round: bool = False) -> Tournament:
    if not can_finish_tournament(tournament):
        raise ValidationError(
            f"Tournament {tournament.id} cannot be finished in round {tournament.current_round}"
        )
    last = get_total_rounds(tournament)
    if remove_incomplete_round and has_no_scored_matches(tournament, last):
        tournament.drop_last_round()
        logger.info(f"Dropped unplayed round {last} of tournament {tournament.id}")
    tournament.finish()
    logger.info(f"Tournament {tournament.id} finished")
    return tournament


# -- Player outcomes & stats ---------------------------------------------------

@dataclass
class PlayerMatchOutcome:
    outcome: str  # won | lost | drew | paused
    points_earned: int


def get_player_match_outcome(tournament: Tournament, player_id: str, round_number: int) -> PlayerMatchOutcome:
    if player_id in get_pausing_players(tournament, round_number):
        return PlayerMatchOutcome("paused", math.ceil(tournament.points_per_game * 0.5))

    match: Optional[Match] = next(
        (m for m in get_round_matches(tournament, round_number) if m.has_player(player_id)),
        None,
    )
    if not match or not match.is_finished:
        return PlayerMatchOutcome("lost", 0)

    if match.team_of(player_id) == 1:
        score_for, score_against = match.score1, match.score2
    else:
        score_for, score_against = match.score2, match.score1

    if score_for == score_against:
        return PlayerMatchOutcome("drew", score_for)
    if score_for > score_against:
        return PlayerMatchOutcome("won", score_for)
    return PlayerMatchOutcome("lost", score_for)


@dataclass
class TournamentStats:
    status: TournamentStatus
    total_matches: int
    finished_matches: int
    total_rounds: int
    completed_rounds: int
    standings: List[PlayerStanding] = field(default_factory=list)
    top_players: List[PlayerStanding] = field(default_factory=list)

    def to_dict(self):
        return {
            "status": self.status.value,
            "total_matches": self.total_matches,
            "finished_matches": self.finished_matches,
            "total_rounds": self.total_rounds,
            "completed_rounds": self.completed_rounds,
            "standings": [s.to_dict() for s in self.standings],
            "top_players": [s.to_dict() for s in self.top_players],
        }


def get_tournament_stats(tournament: Tournament) -> TournamentStats:
    total_rounds = get_total_rounds(tournament)
    completed = 0
    for round_number in range(1, total_rounds + 1):
        if not is_round_complete(tournament, round_number):
            break
        completed += 1

    standings = calculate_standings(tournament)
    return TournamentStats(
        status=tournament.status,
        total_matches=len(tournament.matches),
        finished_matches=sum(1 for m in tournament.matches if m.is_finished),
        total_rounds=total_rounds,
        completed_rounds=completed,
        standings=standings,
        top_players=standings[:3],
    )
