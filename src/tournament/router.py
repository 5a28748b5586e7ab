from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Form, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import TournamentORM, get_session, orm_to_tournament, sync_tournament_orm, tournament_to_orm
from locales.provider import get_locale_provider
from logger import setup_logger
from tournament.exceptions import TournamentNotFound, ValidationError
from tournament.functions import (
    calculate_standings, can_generate_next_round, finish_tournament,
    get_pausing_players, get_round_matches, get_total_rounds, get_tournament_stats,
)
from tournament.models import (
    Match, MatchStatus, Player, Tournament, TournamentStatus,
    generate_id, generate_tournament_id, parse_format,
)
from tournament.search import filter_tournaments, tournament_date
from tournament.naming import generate_tournament_name

logger = setup_logger(__name__)

router = APIRouter(prefix='/tournaments', tags=['Tournaments'])

MIN_PLAYERS = 4
MAX_PLAYERS = 40
MAX_COURTS = 10
POINTS_PER_GAME_CHOICES = (16, 21, 24, 32)
MAX_NAME_LENGTH = 50
MAX_PLAYER_NAME_LENGTH = 16


class MatchIn(BaseModel):
    court: int
    team1: List[str]
    team2: List[str]


# -- Helpers -------------------------------------------------------------------

async def _get_tournament_orm(tid: str, session: AsyncSession) -> TournamentORM:
    result = await session.get(TournamentORM, tid)
    if not result:
        raise TournamentNotFound(f"Tournament {tid} not found")
    return result


async def _save(session: AsyncSession, t_orm: TournamentORM, t: Tournament) -> dict:
    sync_tournament_orm(t_orm, t)
    await session.commit()
    return t.to_dict()


def _check_player_name(name: str) -> str:
    name = name.strip()
    if not name or len(name) > MAX_PLAYER_NAME_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Player names must be 1-{MAX_PLAYER_NAME_LENGTH} characters",
        )
    return name


def _tournament_view(t: Tournament) -> dict:
    current_matches = get_round_matches(t, t.current_round)
    return {
        "tournament": t.to_dict(),
        "standings": [s.to_dict() for s in calculate_standings(t)],
        "current_matches": [m.to_dict() for m in current_matches],
        "pausing_players": get_pausing_players(t, t.current_round),
        "total_rounds": get_total_rounds(t),
    }


def _tournament_summary(t: Tournament) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "format": t.format.value,
        "status": t.status.value,
        "created_at": tournament_date(t).isoformat(),
        "player_count": len(t.players),
        "total_rounds": get_total_rounds(t),
        "finished_matches": sum(1 for m in t.matches if m.status is MatchStatus.FINISHED),
    }


# Routes

@router.get("")
async def list_tournaments(
    q: str = "",
    tournament_format: Optional[str] = Query(None, alias="format"),
    status: Optional[TournamentStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: AsyncSession = Depends(get_session),
):
    """Tournament summaries, newest first, filtered by search words, format, status and date."""
    rows = (await session.scalars(select(TournamentORM))).all()
    found = filter_tournaments(
        (orm_to_tournament(row) for row in rows),
        query=q,
        tournament_format=parse_format(tournament_format) if tournament_format else None,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    found.sort(key=lambda t: t.created_at, reverse=True)
    return [_tournament_summary(t) for t in found]


@router.get("/name")
async def preview_name(
    tournament_format: str = Query("americano", alias="format"),
    language: Optional[str] = None,
):
    name = generate_tournament_name(tournament_format, get_locale_provider(language))
    return {"name": name}


@router.post("/create", status_code=201)
async def create_tournament(
    tournament_format: str = Form(..., alias="format"),
    courts: int = Form(...),
    player_names: str = Form(...),
    points_per_game: int = Form(24),
    name: str = Form(""),
    language: Optional[str] = Form(None),
    session: AsyncSession = Depends(get_session),
):
    event_type = parse_format(tournament_format)
    names = [_check_player_name(n) for n in player_names.split("\n") if n.strip()]

    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        raise HTTPException(
            status_code=400,
            detail=f"Enter between {MIN_PLAYERS} and {MAX_PLAYERS} player names",
        )
    if not 1 <= courts <= MAX_COURTS:
        raise HTTPException(status_code=400, detail=f"Courts must be between 1 and {MAX_COURTS}")
    if points_per_game not in POINTS_PER_GAME_CHOICES:
        raise HTTPException(
            status_code=400,
            detail=f"Points per game must be one of {POINTS_PER_GAME_CHOICES}",
        )

    title = name.strip() or generate_tournament_name(event_type, get_locale_provider(language))
    if len(title) > MAX_NAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Name is longer than {MAX_NAME_LENGTH} characters")

    t = Tournament(
        id=generate_tournament_id(),
        name=title,
        format=event_type,
        players=[Player(id=generate_id(), name=n) for n in names],
        points_per_game=points_per_game,
        courts=courts,
    )
    session.add(tournament_to_orm(t))
    await session.commit()

    logger.info(f"Created {event_type.value} tournament {t.id} '{t.name}' with {len(names)} players")
    return t.to_dict()


@router.head("/{tid}")
async def tournament_head(tid: str, session: AsyncSession = Depends(get_session)):
    row = await session.get(TournamentORM, tid)
    if not row:
        raise HTTPException(status_code=404)
    return Response(status_code=200)


@router.get("/{tid}")
async def tournament_view(tid: str, session: AsyncSession = Depends(get_session)):
    t = orm_to_tournament(await _get_tournament_orm(tid, session))
    return _tournament_view(t)


@router.get("/{tid}/standings")
async def tournament_standings(tid: str, session: AsyncSession = Depends(get_session)):
    t = orm_to_tournament(await _get_tournament_orm(tid, session))
    return [s.to_dict() for s in calculate_standings(t)]


@router.get("/{tid}/stats")
async def tournament_stats(tid: str, session: AsyncSession = Depends(get_session)):
    t = orm_to_tournament(await _get_tournament_orm(tid, session))
    return get_tournament_stats(t).to_dict()


@router.post("/{tid}/rename")
async def rename_tournament(
    tid: str,
    name: str = Form(...),
    session: AsyncSession = Depends(get_session),
):
    if len(name.strip()) > MAX_NAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Name is longer than {MAX_NAME_LENGTH} characters")
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    t.rename(name)
    return await _save(session, t_orm, t)


@router.post("/{tid}/players")
async def add_player(
    tid: str,
    name: str = Form(...),
    emoji: Optional[str] = Form(None),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    if len(t.players) >= MAX_PLAYERS:
        raise HTTPException(status_code=400, detail=f"At most {MAX_PLAYERS} players")
    t.add_player(Player(id=generate_id(), name=_check_player_name(name), emoji=emoji))
    return await _save(session, t_orm, t)


@router.post("/{tid}/players/{pid}/rename")
async def rename_player(
    tid: str,
    pid: str,
    name: str = Form(...),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    t.rename_player(pid, _check_player_name(name))
    return await _save(session, t_orm, t)


@router.post("/{tid}/players/{pid}/delete")
async def delete_player(tid: str, pid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    t.remove_player(pid)
    return await _save(session, t_orm, t)


@router.post("/{tid}/rounds")
async def add_round(
    tid: str,
    matches: List[MatchIn] = Body(...),
    session: AsyncSession = Depends(get_session),
):
    """Store the next round, as produced by a pairing generator, and make it current."""
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)

    if not matches:
        raise HTTPException(status_code=400, detail="A round needs at least one match")
    if not can_generate_next_round(t):
        raise ValidationError(f"Round {t.current_round} is not finished yet")

    round_number = get_total_rounds(t) + 1
    t.add_matches(
        Match(id=generate_id(), round=round_number, court=m.court, team1=m.team1, team2=m.team2)
        for m in matches
    )
    if t.status is TournamentStatus.SETUP:
        t.start()
    if t.current_round < round_number:
        t.advance_round()

    logger.info(f"Tournament {tid}: round {round_number} added with {len(matches)} match(es)")
    return await _save(session, t_orm, t)


@router.post("/{tid}/matches/{mid}/start")
async def start_match(tid: str, mid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    match = t.get_match(mid)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    if t.status is not TournamentStatus.PLAYING:
        raise ValidationError("Matches can only start while the tournament is playing")
    match.start()
    return await _save(session, t_orm, t)


@router.post("/{tid}/score")
async def submit_score(
    tid: str,
    match_id: str = Form(...),
    score1: int = Form(...),
    score2: int = Form(...),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)

    match = t.get_match(match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    if t.status is not TournamentStatus.PLAYING:
        raise ValidationError("Scores can only be entered while the tournament is playing")
    if match.round > t.current_round:
        raise ValidationError(f"Match {match_id} belongs to a future round")

    match.set_score(score1, score2)
    return await _save(session, t_orm, t)


@router.post("/{tid}/finish")
async def finish(
    tid: str,
    remove_incomplete_round: bool = Form(False),
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    t = orm_to_tournament(t_orm)
    finish_tournament(t, remove_incomplete_round=remove_incomplete_round)
    return await _save(session, t_orm, t)


@router.post("/{tid}/delete")
async def delete_tournament(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await session.get(TournamentORM, tid)
    if t_orm:
        await session.delete(t_orm)
        await session.commit()
        logger.info(f"Deleted tournament {tid}")
    return {"deleted": bool(t_orm)}
