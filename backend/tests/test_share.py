from app.services.share import format_game_result, team_label
from app.services.stats import GameRecord, PlayerRef, TeamResult

ALICE = PlayerRef(name="Alice", id="a")
BOB = PlayerRef(name="Bob", id="b")
CARA = PlayerRef(name="Cara", id="c")


def test_team_label_joins_present_players():
    assert team_label(TeamResult(players=(ALICE, BOB), score=11)) == "Alice & Bob"
    assert team_label(TeamResult(players=(None, CARA), score=3)) == "Cara"


def test_format_game_result_names_winner():
    record = GameRecord(
        team1=TeamResult(players=(ALICE, BOB), score=9),
        team2=TeamResult(players=(CARA, None), score=11),
        winner="team2",
    )

    assert format_game_result(record).splitlines() == [
        "🏓 Pickleball Match Results",
        "Alice & Bob: 9",
        "Cara: 11",
        "Cara wins! 🏆",
    ]
