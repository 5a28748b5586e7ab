from uuid import uuid4

from asyncpg import Connection
from sqlalchemy import (
    JSON, Column, DateTime, ForeignKey, Integer, String, func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, relationship

from config import DATABASE_URL, SQL_ECHO
from tournament.models import Match, Player, Tournament


class Base(DeclarativeBase): pass


class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


def _engine_options(url: str) -> dict:
    options = {"echo": SQL_ECHO}
    # pgbouncer-friendly asyncpg settings
    if url.startswith("postgresql+asyncpg"):
        options["connect_args"] = {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "connection_class": FixedConnection,
        }
    return options


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


#ORM

TeamType = JSON().with_variant(JSONB(), "postgresql")


class TournamentORM(Base):
    __tablename__ = "tournaments"

    id              = Column(String, primary_key=True)
    format          = Column(String, nullable=False, default="americano")  # americano | mexicano
    name            = Column(String, nullable=False)
    courts          = Column(Integer, nullable=False)
    points_per_game = Column(Integer, nullable=False, default=24)
    status          = Column(String, nullable=False, default="setup")  # setup | playing | finished
    current_round   = Column(Integer, nullable=False, default=0)
    created_at      = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    players = relationship(
        "PlayerORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="PlayerORM.position",
        lazy="selectin",
    )
    matches = relationship(
        "MatchORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="MatchORM.position",
        lazy="selectin",
    )


class PlayerORM(Base):
    __tablename__ = "players"

    id            = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    position      = Column(Integer, nullable=False, default=0)  # roster order
    name          = Column(String, nullable=False)
    emoji         = Column(String, nullable=True)

    tournament = relationship("TournamentORM", back_populates="players")


class MatchORM(Base):
    __tablename__ = "matches"

    id            = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    position      = Column(Integer, nullable=False, default=0)  # generation order
    round         = Column(Integer, nullable=False)
    court         = Column(Integer, nullable=False)
    team1         = Column(TeamType, nullable=False)   # list[str] -- player ids
    team2         = Column(TeamType, nullable=False)
    score1        = Column(Integer, nullable=True)
    score2        = Column(Integer, nullable=True)
    status        = Column(String, nullable=False, default="pending")  # pending | playing | finished

    tournament = relationship("TournamentORM", back_populates="matches")


# Mapping

def orm_to_tournament(t_row: TournamentORM) -> Tournament:
    """Convert the ORM rows of one tournament into the validated dataclass."""
    return Tournament(
        id=t_row.id,
        name=t_row.name,
        format=t_row.format,
        players=[Player(id=p.id, name=p.name, emoji=p.emoji) for p in t_row.players],
        matches=[
            Match(
                id=m.id, round=m.round, court=m.court,
                team1=list(m.team1), team2=list(m.team2),
                score1=m.score1, score2=m.score2,
                status=m.status,
            )
            for m in t_row.matches
        ],
        current_round=t_row.current_round,
        points_per_game=t_row.points_per_game,
        courts=t_row.courts,
        status=t_row.status,
        created_at=t_row.created_at,
    )


def tournament_to_orm(t: Tournament) -> TournamentORM:
    t_row = TournamentORM(id=t.id, created_at=t.created_at, players=[], matches=[])
    sync_tournament_orm(t_row, t)
    return t_row


def sync_tournament_orm(t_row: TournamentORM, t: Tournament):
    """Copy the state of ``t`` onto ``t_row``, adding and removing child rows."""
    t_row.name = t.name
    t_row.format = t.format.value
    t_row.courts = t.courts
    t_row.points_per_game = t.points_per_game
    t_row.status = t.status.value
    t_row.current_round = t.current_round

    existing_players = {p.id: p for p in t_row.players}
    for position, player in enumerate(t.players):
        p_row = existing_players.pop(player.id, None)
        if p_row is None:
            p_row = PlayerORM(id=player.id)
            t_row.players.append(p_row)
        p_row.position = position
        p_row.name = player.name
        p_row.emoji = player.emoji
    for p_row in existing_players.values():
        t_row.players.remove(p_row)

    existing_matches = {m.id: m for m in t_row.matches}
    for position, match in enumerate(t.matches):
        m_row = existing_matches.pop(match.id, None)
        if m_row is None:
            m_row = MatchORM(id=match.id)
            t_row.matches.append(m_row)
        m_row.position = position
        m_row.round = match.round
        m_row.court = match.court
        m_row.team1 = list(match.team1)
        m_row.team2 = list(match.team2)
        m_row.score1 = match.score1
        m_row.score2 = match.score2
        m_row.status = match.status.value
    for m_row in existing_matches.values():
        t_row.matches.remove(m_row)
