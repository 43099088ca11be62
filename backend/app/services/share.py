"""Plain-text game summaries for sharing outside the app."""

from .stats import GameRecord, TeamResult, TEAM_1

SHARE_TITLE = "🏓 Pickleball Match Results"


def team_label(team: TeamResult) -> str:
    return " & ".join(p.name for p in team.present())


def format_game_result(game: GameRecord) -> str:
    team1 = team_label(game.team1)
    team2 = team_label(game.team2)
    winner = team1 if game.winner == TEAM_1 else team2
    return "\n".join(
        [
            SHARE_TITLE,
            f"{team1}: {game.team1.score}",
            f"{team2}: {game.team2.score}",
            f"{winner} wins! 🏆",
        ]
    )
