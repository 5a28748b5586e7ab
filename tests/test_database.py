from database import orm_to_tournament, sync_tournament_orm, tournament_to_orm
from tournament.models import Match, Player


def test_orm_mapping_keeps_everything(played):
    row = tournament_to_orm(played)
    assert row.format == "americano"
    assert [p.position for p in row.players] == list(range(8))
    assert [m.id for m in row.matches] == ["m1", "m2", "m3", "m4"]
    assert row.matches[0].status == "finished"

    restored = orm_to_tournament(row)
    assert restored.to_dict() == played.to_dict()


def test_sync_adds_updates_and_removes(tournament):
    row = tournament_to_orm(tournament)

    tournament.remove_player("p8")
    tournament.rename_player("p1", "Alicia")
    tournament.add_player(Player(id="p9", name="Ivy", emoji="🎾"))
    tournament.add_matches([Match(id="m1", round=1, court=1, team1=["p1", "p2"], team2=["p3", "p9"])])
    tournament.start()
    tournament.advance_round()
    sync_tournament_orm(row, tournament)

    assert [p.id for p in row.players] == ["p1", "p2", "p3", "p4", "p5", "p6", "p7", "p9"]
    assert row.players[0].name == "Alicia"
    assert row.players[-1].emoji == "🎾"
    assert row.status == "playing"
    assert row.current_round == 1
    assert row.matches[0].team2 == ["p3", "p9"]

    tournament.get_match("m1").set_score(16, 8)
    sync_tournament_orm(row, tournament)
    assert (row.matches[0].score1, row.matches[0].score2, row.matches[0].status) == (16, 8, "finished")
