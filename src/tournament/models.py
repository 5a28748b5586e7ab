import random
import unicodedata
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tournament.exceptions import InvalidInput, ValidationError


def generate_id():
    return str(uuid.uuid4())[:8]


# Tournament ids: 5 base36 chars of hours since the epoch + 4 random base36 chars.
TOURNAMENT_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)
MAX_TIMESTAMP_HOURS = 36 ** 5 - 1
BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int, width: int) -> str:
    digits = ""
    while value:
        value, rem = divmod(value, 36)
        digits = BASE36[rem] + digits
    return digits.rjust(width, "0")


def generate_tournament_id(date: Optional[datetime] = None) -> str:
    now = date or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    hours = (now - TOURNAMENT_EPOCH) // timedelta(hours=1)
    if hours < 0 or hours > MAX_TIMESTAMP_HOURS:
        raise ValidationError("Date out of supported tournament id range")
    suffix = "".join(random.choice(BASE36) for _ in range(4))
    return _to_base36(hours, 5) + suffix


def extract_timestamp_from_id(tid: str) -> datetime:
    """Recover the creation hour encoded in a tournament id."""
    if len(tid) != 9:
        raise ValidationError("Invalid tournament id length")
    prefix = tid[:5]
    if any(c not in BASE36 for c in prefix):
        raise ValidationError("Invalid tournament id timestamp")
    return TOURNAMENT_EPOCH + timedelta(hours=int(prefix, 36))


class TournamentFormat(str, Enum):
    AMERICANO = "americano"
    MEXICANO = "mexicano"


class MatchStatus(str, Enum):
    PENDING = "pending"
    PLAYING = "playing"
    FINISHED = "finished"


class TournamentStatus(str, Enum):
    SETUP = "setup"
    PLAYING = "playing"
    FINISHED = "finished"


def parse_format(value) -> TournamentFormat:
    try:
        return TournamentFormat(value)
    except ValueError:
        raise InvalidInput(f"Unknown tournament format: {value!r}") from None


def _parse_status(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {enum_cls.__name__}: {value!r}") from None


def check_transition(current, target):
    """Statuses only move forward, in declaration order."""
    order = list(type(current))
    if order.index(target) <= order.index(current):
        raise ValidationError(
            f"Cannot change status from '{current.value}' to '{target.value}'"
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_positive(name: str, value):
    if not _is_int(value) or value < 1:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name must not be empty")
    return name.strip()


def _check_scores(score1, score2, status: MatchStatus):
    if (score1 is None) != (score2 is None):
        raise ValidationError("score1 and score2 must be set together")
    if score1 is None:
        if status is MatchStatus.FINISHED:
            raise ValidationError("A finished match needs a score")
        return
    for score in (score1, score2):
        if not _is_int(score) or score < 0:
            raise ValidationError(f"Score must be a non-negative integer, got {score!r}")
    if status is MatchStatus.PENDING:
        raise ValidationError("Scores can only be set once the match is playing")


# Emoji pieces that attach to the glyph before them.
ZWJ = 0x200D
REGIONAL_INDICATORS = range(0x1F1E6, 0x1F200)
SKIN_TONES = range(0x1F3FB, 0x1F400)
TAG_CHARACTERS = range(0xE0020, 0xE0080)


def _is_single_glyph(text: str) -> bool:
    """True when ``text`` renders as one glyph: a base character plus modifiers,
    ZWJ-joined emoji, or a regional-indicator flag pair."""
    if not text or any(c.isspace() for c in text):
        return False
    expect_base = True
    flag_half = False
    for ch in text:
        cp = ord(ch)
        if expect_base:
            expect_base = False
            flag_half = cp in REGIONAL_INDICATORS
            continue
        if cp == ZWJ:
            expect_base = True
            continue
        if unicodedata.category(ch).startswith("M") or cp in SKIN_TONES or cp in TAG_CHARACTERS:
            continue
        if flag_half and cp in REGIONAL_INDICATORS:
            flag_half = False
            continue
        return False
    return not expect_base


def _check_emoji(emoji) -> Optional[str]:
    if emoji in (None, ""):
        return None
    if not isinstance(emoji, str) or not _is_single_glyph(emoji):
        raise ValidationError(f"Emoji must be a single glyph, got {emoji!r}")
    return emoji


class _Guarded:
    """Routes assignments made after construction through validation.

    Fields in ``_fixed`` cannot be reassigned at all; everything else listed
    in ``_checked`` is assigned through ``_assign`` and rolled back when the
    entity's ``validate()`` rejects the new state.
    """

    _fixed: tuple = ()
    _checked: tuple = ()

    def __setattr__(self, name, value):
        if not self.__dict__.get("_ready"):
            super().__setattr__(name, value)
        elif name in self._fixed:
            raise ValidationError(f"{name} cannot be changed")
        elif name == "status":
            self.set_status(value)
        elif name in self._checked:
            self._assign(**{name: self._coerce(name, value)})
        else:
            super().__setattr__(name, value)

    def _coerce(self, name, value):
        return value

    def _assign(self, **values):
        old = {key: self.__dict__[key] for key in values}
        self.__dict__.update(values)
        try:
            self.validate()
        except ValidationError:
            self.__dict__.update(old)
            raise

    def _seal(self):
        self.__dict__["_ready"] = True


@dataclass
class Player(_Guarded):
    id: str
    name: str
    emoji: Optional[str] = None

    _fixed = ("id",)
    _checked = ("name", "emoji")

    def __post_init__(self):
        self.validate()
        self._seal()

    def validate(self):
        if not self.id:
            raise ValidationError("Player id must not be empty")
        self.__dict__["name"] = _clean_name(self.name)
        self.__dict__["emoji"] = _check_emoji(self.emoji)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(id=data["id"], name=data["name"], emoji=data.get("emoji"))


@dataclass
class Match(_Guarded):
    id: str
    round: int
    court: int
    team1: Tuple[str, str]  # player ids
    team2: Tuple[str, str]  # player ids
    score1: Optional[int] = None
    score2: Optional[int] = None
    status: MatchStatus = MatchStatus.PENDING

    # Pairing is settled when the match is generated; only play moves on.
    _fixed = ("id", "round", "court", "team1", "team2")
    _checked = ("score1", "score2")

    def __post_init__(self):
        self.__dict__.update(
            status=_parse_status(MatchStatus, self.status),
            team1=tuple(self.team1),
            team2=tuple(self.team2),
        )
        self.validate()
        self._seal()

    def validate(self):
        if not self.id:
            raise ValidationError("Match id must not be empty")
        _require_positive("round", self.round)
        _require_positive("court", self.court)
        for team in (self.team1, self.team2):
            if len(team) != 2 or len(set(team)) != 2 or not all(team):
                raise ValidationError(f"A team is two different players, got {list(team)!r}")
        overlap = set(self.team1) & set(self.team2)
        if overlap:
            raise ValidationError(
                f"Player(s) {sorted(overlap)} cannot play on both sides of match {self.id}"
            )
        _check_scores(self.score1, self.score2, self.status)

    @property
    def player_ids(self) -> List[str]:
        return list(self.team1 + self.team2)

    @property
    def is_finished(self) -> bool:
        return self.status is MatchStatus.FINISHED

    @property
    def has_score(self) -> bool:
        return self.score1 is not None

    def has_player(self, player_id: str) -> bool:
        return player_id in self.team1 or player_id in self.team2

    def team_of(self, player_id: str) -> Optional[int]:
        """1 or 2 for the side the player is on, None when not in the match."""
        if player_id in self.team1:
            return 1
        if player_id in self.team2:
            return 2
        return None

    def set_status(self, status):
        target = _parse_status(MatchStatus, status)
        check_transition(self.status, target)
        self._assign(status=target)

    def start(self):
        self.set_status(MatchStatus.PLAYING)

    def finish(self):
        self.set_status(MatchStatus.FINISHED)

    def set_score(self, score1: int, score2: int, finish: bool = True):
        """Record a score, starting a pending match first.

        A finished match can have its score corrected (``finish=True``), but
        asking to leave it unfinished is a status regression and is refused.
        """
        target = self.status
        if target is MatchStatus.PENDING:
            target = MatchStatus.PLAYING
        if finish:
            target = MatchStatus.FINISHED
        elif target is MatchStatus.FINISHED:
            raise ValidationError(f"Match {self.id} is finished and cannot go back to playing")
        _check_scores(score1, score2, target)
        if target is not self.status:
            check_transition(self.status, target)
        self._assign(score1=score1, score2=score2, status=target)

    def clear_score(self):
        if self.status is not MatchStatus.PLAYING:
            raise ValidationError("Only a match in play can have its score cleared")
        self._assign(score1=None, score2=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "round": self.round,
            "court": self.court,
            "team1": list(self.team1),
            "team2": list(self.team2),
            "score1": self.score1,
            "score2": self.score2,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        return cls(
            id=data["id"],
            round=data["round"],
            court=data["court"],
            team1=data["team1"],
            team2=data["team2"],
            score1=data.get("score1"),
            score2=data.get("score2"),
            status=data.get("status", MatchStatus.PENDING),
        )


def _utcnow():
    return datetime.now(timezone.utc)


@dataclass
class Tournament(_Guarded):
    id: str
    name: str
    format: TournamentFormat
    players: Tuple[Player, ...] = ()
    matches: Tuple[Match, ...] = ()  # generation order
    current_round: int = 0
    points_per_game: int = 24
    courts: int = 1
    status: TournamentStatus = TournamentStatus.SETUP
    created_at: datetime = field(default_factory=_utcnow)

    _fixed = ("id", "format", "created_at")
    _checked = ("name", "players", "matches", "current_round", "points_per_game", "courts")

    def __post_init__(self):
        self.__dict__.update(
            format=parse_format(self.format),
            status=_parse_status(TournamentStatus, self.status),
            name=_clean_name(self.name),
            players=tuple(self.players),
            matches=tuple(self.matches),
        )
        self.validate()
        self._seal()

    def _coerce(self, name, value):
        if name == "name":
            return _clean_name(value)
        if name in ("players", "matches"):
            return tuple(value)
        return value

    # -- Validation -------------------------------------------------------------

    def validate(self):
        if not self.id:
            raise ValidationError("Tournament id must not be empty")
        _require_positive("points_per_game", self.points_per_game)
        _require_positive("courts", self.courts)
        ids = [p.id for p in self.players]
        if len(ids) != len(set(ids)):
            raise ValidationError("Player ids must be unique")
        self._check_matches(self.matches)
        if not _is_int(self.current_round) or self.current_round < 0:
            raise ValidationError("current_round must be a non-negative integer")
        if self.current_round > self.max_round + 1:
            raise ValidationError(
                f"current_round {self.current_round} is past the next round ({self.max_round + 1})"
            )

    def _check_matches(self, matches: Iterable[Match]):
        known = {p.id for p in self.players}
        match_ids = set()
        slots = set()
        busy: Dict[int, set] = {}
        for m in matches:
            if m.id in match_ids:
                raise ValidationError(f"Duplicate match id {m.id}")
            match_ids.add(m.id)
            unknown = [pid for pid in m.player_ids if pid not in known]
            if unknown:
                raise ValidationError(f"Match {m.id} references unknown players {unknown}")
            if m.court > self.courts:
                raise ValidationError(
                    f"Match {m.id} is on court {m.court} but only {self.courts} court(s) exist"
                )
            if (m.round, m.court) in slots:
                raise ValidationError(f"Court {m.court} is used twice in round {m.round}")
            slots.add((m.round, m.court))
            in_round = busy.setdefault(m.round, set())
            twice = in_round.intersection(m.player_ids)
            if twice:
                raise ValidationError(f"Player(s) {sorted(twice)} play twice in round {m.round}")
            in_round.update(m.player_ids)

    def _require_setup(self, action: str):
        if self.status is not TournamentStatus.SETUP:
            raise ValidationError(f"Cannot {action} after the tournament has started")

    # -- Lookups ----------------------------------------------------------------

    @property
    def max_round(self) -> int:
        return max((m.round for m in self.matches), default=0)

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def get_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.matches if m.id == match_id), None)

    def player_names(self) -> Dict[str, str]:
        return {p.id: p.name for p in self.players}

    # -- Mutations --------------------------------------------------------------

    def rename(self, name: str):
        self.name = name

    def add_player(self, player: Player):
        self._require_setup("add players")
        if self.get_player(player.id):
            raise ValidationError(f"Player {player.id} is already in the tournament")
        self._assign(players=self.players + (player,))

    def rename_player(self, player_id: str, name: str):
        self._require_setup("rename players")
        player = self.get_player(player_id)
        if not player:
            raise ValidationError(f"Unknown player {player_id}")
        player.name = name

    def remove_player(self, player_id: str):
        self._require_setup("remove players")
        if not self.get_player(player_id):
            raise ValidationError(f"Unknown player {player_id}")
        if any(m.has_player(player_id) for m in self.matches):
            raise ValidationError(f"Player {player_id} still has matches")
        self._assign(players=tuple(p for p in self.players if p.id != player_id))

    def add_matches(self, matches: Iterable[Match]):
        """Append freshly generated matches, keeping generation order."""
        if self.status is TournamentStatus.FINISHED:
            raise ValidationError("Cannot add matches to a finished tournament")
        new = tuple(matches)
        last = self.max_round
        early = [m.id for m in new if m.round < last]
        if early:
            raise ValidationError(f"Matches {early} belong to a round before round {last}")
        self._assign(matches=self.matches + new)

    def drop_last_round(self):
        last = self.max_round
        if last == 0:
            raise ValidationError("There is no round to drop")
        if any(m.has_score for m in self.matches if m.round == last):
            raise ValidationError(f"Round {last} already has scores")
        kept = tuple(m for m in self.matches if m.round != last)
        new_last = max((m.round for m in kept), default=0)
        self._assign(matches=kept, current_round=min(self.current_round, new_last))

    def advance_round(self):
        if self.status is TournamentStatus.FINISHED:
            raise ValidationError("The tournament is finished")
        if self.current_round + 1 > self.max_round + 1:
            raise ValidationError(f"Round {self.current_round + 1} has no matches yet")
        self._assign(current_round=self.current_round + 1)

    def set_status(self, status):
        target = _parse_status(TournamentStatus, status)
        check_transition(self.status, target)
        self._assign(status=target)

    def start(self):
        self.set_status(TournamentStatus.PLAYING)

    def finish(self):
        self.set_status(TournamentStatus.FINISHED)

    # -- Serialization ----------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "format": self.format.value,
            "players": [p.to_dict() for p in self.players],
            "matches": [m.to_dict() for m in self.matches],
            "current_round": self.current_round,
            "points_per_game": self.points_per_game,
            "courts": self.courts,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tournament":
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=data["id"],
            name=data["name"],
            format=data["format"],
            players=[Player.from_dict(p) for p in data.get("players", [])],
            matches=[Match.from_dict(m) for m in data.get("matches", [])],
            current_round=data.get("current_round", 0),
            points_per_game=data.get("points_per_game", 24),
            courts=data.get("courts", 1),
            status=data.get("status", TournamentStatus.SETUP),
            created_at=created_at or _utcnow(),
        )


@dataclass
class PlayerStanding:
    player_id: str
    player_name: str
    points: int = 0
    games_played: int = 0
    games_won: int = 0
    games_drawn: int = 0
    games_lost: int = 0
    rank: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
