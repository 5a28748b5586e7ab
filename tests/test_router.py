from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from database import Base, get_session
from main import app

PLAYERS = "Alice\nBob\nCharlie\nDiana\nEve\nFrank"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'padel.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    async def _session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    await engine.dispose()


async def create(client, **form):
    data = {"format": "americano", "courts": "1", "player_names": PLAYERS}
    data.update(form)
    resp = await client.post("/tournaments/create", data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()


def ids_by_name(tournament):
    return {p["name"]: p["id"] for p in tournament["players"]}


@pytest.mark.anyio
async def test_name_preview(client):
    resp = await client.get("/tournaments/name", params={"format": "mexicano", "language": "pl"})
    assert resp.status_code == 200
    assert resp.json()["name"].startswith("Mexicano ")

    resp = await client.get("/tournaments/name", params={"format": "swiss"})
    assert resp.status_code == 400

    resp = await client.get("/tournaments/name", params={"language": "xx"})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_create_and_view(client):
    t = await create(client, language="en")
    assert t["name"].startswith("Americano ")
    assert t["status"] == "setup"
    assert len(t["id"]) == 9
    assert [p["name"] for p in t["players"]] == PLAYERS.split("\n")

    resp = await client.get(f"/tournaments/{t['id']}")
    assert resp.status_code == 200
    view = resp.json()
    assert view["tournament"]["id"] == t["id"]
    assert view["total_rounds"] == 0
    assert len(view["standings"]) == 6

    resp = await client.head(f"/tournaments/{t['id']}")
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_create_with_custom_name(client):
    t = await create(client, name="Friday Night", format="mexicano", points_per_game="32")
    assert t["name"] == "Friday Night"
    assert t["format"] == "mexicano"
    assert t["points_per_game"] == 32


@pytest.mark.anyio
@pytest.mark.parametrize("form", [
    {"player_names": "Alice\nBob\nCharlie"},
    {"courts": "11"},
    {"points_per_game": "20"},
    {"format": "swiss"},
    {"player_names": PLAYERS + "\nAVeryLongPlayerNameIndeed"},
])
async def test_create_rejects_bad_input(client, form):
    data = {"format": "americano", "courts": "1", "player_names": PLAYERS}
    data.update(form)
    resp = await client.post("/tournaments/create", data=data)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_unknown_tournament(client):
    assert (await client.get("/tournaments/nope12345")).status_code == 404
    assert (await client.head("/tournaments/nope12345")).status_code == 404
    resp = await client.post("/tournaments/nope12345/score", data={"match_id": "m", "score1": 1, "score2": 2})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_roster_edits(client):
    t = await create(client)
    tid = t["id"]

    resp = await client.post(f"/tournaments/{tid}/players", data={"name": "Grace", "emoji": "🎾"})
    assert resp.status_code == 200
    grace = resp.json()["players"][-1]
    assert grace["emoji"] == "🎾"

    resp = await client.post(f"/tournaments/{tid}/players/{grace['id']}/rename", data={"name": "Gracie"})
    assert resp.json()["players"][-1]["name"] == "Gracie"

    resp = await client.post(f"/tournaments/{tid}/players/{grace['id']}/delete")
    assert len(resp.json()["players"]) == 6

    resp = await client.post(f"/tournaments/{tid}/rename", data={"name": "Club Night"})
    assert resp.json()["name"] == "Club Night"


@pytest.mark.anyio
async def test_full_tournament(client):
    t = await create(client)
    tid = t["id"]
    ids = ids_by_name(t)

    round1 = [{"court": 1, "team1": [ids["Alice"], ids["Bob"]], "team2": [ids["Charlie"], ids["Diana"]]}]
    resp = await client.post(f"/tournaments/{tid}/rounds", json=round1)
    assert resp.status_code == 200, resp.text
    t = resp.json()
    assert t["status"] == "playing"
    assert t["current_round"] == 1
    match_id = t["matches"][0]["id"]

    # roster is locked once play starts
    resp = await client.post(f"/tournaments/{tid}/players", data={"name": "Late"})
    assert resp.status_code == 409

    # round 1 is still open
    round2 = [{"court": 1, "team1": [ids["Eve"], ids["Frank"]], "team2": [ids["Alice"], ids["Charlie"]]}]
    resp = await client.post(f"/tournaments/{tid}/rounds", json=round2)
    assert resp.status_code == 409

    resp = await client.post(f"/tournaments/{tid}/matches/{match_id}/start")
    assert resp.json()["matches"][0]["status"] == "playing"

    resp = await client.post(f"/tournaments/{tid}/score", data={"match_id": match_id, "score1": 15, "score2": 9})
    assert resp.status_code == 200
    assert resp.json()["matches"][0]["status"] == "finished"

    resp = await client.post(f"/tournaments/{tid}/rounds", json=round2)
    assert resp.status_code == 200
    assert resp.json()["current_round"] == 2

    resp = await client.get(f"/tournaments/{tid}/standings")
    standings = resp.json()
    assert standings[0]["player_name"] == "Alice"
    assert standings[0]["points"] == 15

    view = (await client.get(f"/tournaments/{tid}")).json()
    assert sorted(view["pausing_players"]) == sorted([ids["Bob"], ids["Diana"]])

    resp = await client.post(f"/tournaments/{tid}/finish", data={"remove_incomplete_round": "true"})
    assert resp.status_code == 200
    t = resp.json()
    assert t["status"] == "finished"
    assert len(t["matches"]) == 1

    stats = (await client.get(f"/tournaments/{tid}/stats")).json()
    assert stats["completed_rounds"] == 1
    assert stats["status"] == "finished"

    resp = await client.post(f"/tournaments/{tid}/score", data={"match_id": match_id, "score1": 1, "score2": 2})
    assert resp.status_code == 409


@pytest.mark.anyio
async def test_invalid_round_is_rejected(client):
    t = await create(client)
    ids = ids_by_name(t)
    overlap = [{"court": 1, "team1": [ids["Alice"], ids["Bob"]], "team2": [ids["Bob"], ids["Diana"]]}]
    resp = await client.post(f"/tournaments/{t['id']}/rounds", json=overlap)
    assert resp.status_code == 409

    too_many_courts = [{"court": 2, "team1": [ids["Alice"], ids["Bob"]], "team2": [ids["Eve"], ids["Diana"]]}]
    resp = await client.post(f"/tournaments/{t['id']}/rounds", json=too_many_courts)
    assert resp.status_code == 409

    view = (await client.get(f"/tournaments/{t['id']}")).json()
    assert view["tournament"]["matches"] == []
    assert view["tournament"]["status"] == "setup"


@pytest.mark.anyio
async def test_delete(client):
    t = await create(client)
    resp = await client.post(f"/tournaments/{t['id']}/delete")
    assert resp.json() == {"deleted": True}
    assert (await client.get(f"/tournaments/{t['id']}")).status_code == 404
    resp = await client.post(f"/tournaments/{t['id']}/delete")
    assert resp.json() == {"deleted": False}


@pytest.mark.anyio
async def test_list_and_search(client):
    winter = await create(client, name="Winter Cup")
    lodz = await create(client, format="mexicano", name="Łódź Open", player_names="Łukasz\nZoë\nBob\nDiana")
    ids = ids_by_name(winter)
    resp = await client.post(
        f"/tournaments/{winter['id']}/rounds",
        json=[{"court": 1, "team1": [ids["Alice"], ids["Bob"]], "team2": [ids["Charlie"], ids["Diana"]]}],
    )
    match_id = resp.json()["matches"][0]["id"]
    await client.post(f"/tournaments/{winter['id']}/score", data={"match_id": match_id, "score1": "14", "score2": "10"})
    resp = await client.post(f"/tournaments/{winter['id']}/finish")
    assert resp.status_code == 200, resp.text

    async def names(**params):
        resp = await client.get("/tournaments", params=params)
        assert resp.status_code == 200, resp.text
        return sorted(s["name"] for s in resp.json())

    assert await names() == ["Winter Cup", "Łódź Open"]
    assert await names(q="lodz") == ["Łódź Open"]
    assert await names(q="lukasz zoe") == ["Łódź Open"]
    assert await names(q="bob") == ["Winter Cup", "Łódź Open"]
    assert await names(q="bob frank") == ["Winter Cup"]
    assert await names(q="bob nobody") == []
    assert await names(format="mexicano") == ["Łódź Open"]
    assert await names(status="finished") == ["Winter Cup"]

    today = datetime.now(timezone.utc).date()
    assert await names(date_from=today.isoformat(), date_to=today.isoformat()) == ["Winter Cup", "Łódź Open"]
    assert await names(date_to=(today - timedelta(days=1)).isoformat()) == []

    summary = next(s for s in (await client.get("/tournaments")).json() if s["id"] == lodz["id"])
    assert summary["format"] == "mexicano"
    assert summary["player_count"] == 4
    assert summary["total_rounds"] == 0

    assert (await client.get("/tournaments", params={"format": "swiss"})).status_code == 400


@pytest.mark.anyio
async def test_index_links_to_tournament_list(client):
    link = (await client.get("/")).json()["tournaments"]
    resp = await client.get(link)
    assert resp.status_code == 200
    assert resp.json() == []
