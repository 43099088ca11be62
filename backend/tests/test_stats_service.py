import itertools
import random

import pytest

from app.services.stats import (
    GameRecord,
    PlayerRef,
    PlayerStat,
    TeamResult,
    compute_player_stats,
    identity_key,
    rank_player_stats,
    round_one_decimal,
)

ALICE = PlayerRef(name="Alice", id="p-alice")
BOB = PlayerRef(name="Bob", id="p-bob")
CARA = PlayerRef(name="Cara", id="p-cara")
DAN = PlayerRef(name="Dan", id="p-dan")


def _slots(players):
    return tuple(players) + (None,) * (2 - len(players))


def game(team1, team2, score1, score2, winner=None, game_id=None):
    if winner is None:
        winner = "team1" if score1 > score2 else "team2"

    return GameRecord(
        id=game_id,
        team1=TeamResult(players=_slots(team1), score=score1),
        team2=TeamResult(players=_slots(team2), score=score2),
        winner=winner,
    )


def by_key(stats):
    return {s.key: s for s in stats}


def totals(stats):
    return {
        s.key: (s.games_played, s.wins, s.losses, s.total_points, s.win_rate, s.avg_points)
        for s in stats
    }


def test_empty_history_yields_no_stats():
    assert compute_player_stats([]) == []


def test_single_game_singles():
    stats = compute_player_stats([game([ALICE], [BOB], 11, 5)])

    assert [s.player for s in stats] == [ALICE, BOB]
    alice, bob = stats
    assert (alice.games_played, alice.wins, alice.losses) == (1, 1, 0)
    assert alice.total_points == 11
    assert alice.win_rate == 100.0
    assert alice.avg_points == 11.0
    assert (bob.games_played, bob.wins, bob.losses) == (1, 0, 1)
    assert bob.total_points == 5
    assert bob.win_rate == 0.0
    assert bob.avg_points == 5.0


def test_two_wins_accumulate():
    stats = by_key(
        compute_player_stats(
            [game([ALICE], [BOB], 11, 5), game([ALICE], [CARA], 11, 9)]
        )
    )
    alice = stats["p-alice"]
    assert alice.games_played == 2
    assert alice.wins == 2
    assert alice.losses == 0
    assert alice.total_points == 22
    assert alice.win_rate == 100.0
    assert alice.avg_points == 11.0


def test_doubles_credit_both_partners():
    stats = by_key(compute_player_stats([game([ALICE, BOB], [CARA, DAN], 11, 8)]))

    for key in ("p-alice", "p-bob"):
        assert stats[key].wins == 1
        assert stats[key].total_points == 11
    for key in ("p-cara", "p-dan"):
        assert stats[key].losses == 1
        assert stats[key].total_points == 8


def test_win_rate_breaks_tie_on_wins():
    history = [
        # Alice: 3 wins, 1 loss
        game([ALICE], [CARA], 11, 3),
        game([ALICE], [CARA], 11, 4),
        game([ALICE], [CARA], 11, 6),
        game([ALICE], [CARA], 2, 11),
        # Bob: 3 wins, 0 losses
        game([BOB], [DAN], 11, 1),
        game([BOB], [DAN], 11, 2),
        game([BOB], [DAN], 11, 7),
    ]
    stats = compute_player_stats(history)
    alice = by_key(stats)["p-alice"]

    assert alice.win_rate == 75.0
    assert stats[0].player == BOB
    assert stats[1].player == ALICE


def test_full_ties_fall_back_to_name():
    zed = PlayerRef(name="zed", id="p-zed")
    amy = PlayerRef(name="Amy", id="p-amy")
    history = [
        game([zed], [CARA], 11, 2),
        game([amy], [DAN], 11, 4),
    ]
    stats = compute_player_stats(history)

    assert [s.player.name for s in stats] == ["Amy", "zed", "Cara", "Dan"]


def test_identical_names_with_ids_fall_back_to_identity_key():
    first = PlayerRef(name="Sam", id="b-sam")
    second = PlayerRef(name="Sam", id="a-sam")
    stats = compute_player_stats([game([first], [second], 11, 9, winner="team1"),
                                  game([second], [first], 11, 9, winner="team1")])

    assert [s.key for s in stats] == ["a-sam", "b-sam"]


def test_wins_follow_winner_field_not_scores():
    stats = by_key(compute_player_stats([game([ALICE], [BOB], 11, 11, winner="team2")]))

    assert stats["p-bob"].wins == 1
    assert stats["p-alice"].losses == 1


def test_transient_players_bucket_by_name():
    anon_a = PlayerRef(name="Guest")
    anon_b = PlayerRef(name="Guest", email="other@example.com")
    stats = compute_player_stats(
        [game([anon_a], [BOB], 11, 4), game([anon_b], [CARA], 6, 11)]
    )
    guest = by_key(stats)["Guest"]

    assert identity_key(anon_a) == identity_key(anon_b) == "Guest"
    assert guest.games_played == 2
    assert (guest.wins, guest.losses) == (1, 1)
    # The first reference seen is the one retained.
    assert guest.player is anon_a


def test_empty_team_is_a_no_op():
    stats = compute_player_stats([game([ALICE], [], 11, 0)])

    assert len(stats) == 1
    assert stats[0].wins == 1


def test_game_with_no_players_is_ignored():
    assert compute_player_stats([game([], [], 11, 3)]) == []


def test_one_entry_per_player_and_counts_balance():
    rng = random.Random(7)
    roster = [PlayerRef(name=f"P{i}", id=f"id-{i}") for i in range(6)]
    history = []
    appearances = {p.id: 0 for p in roster}
    for _ in range(40):
        picked = rng.sample(roster, 4)
        size1, size2 = rng.choice([1, 2]), rng.choice([1, 2])
        team1, team2 = picked[:size1], picked[2 : 2 + size2]
        for p in team1 + team2:
            appearances[p.id] += 1
        s1, s2 = rng.sample(range(12), 2)
        history.append(game(team1, team2, s1, s2))

    stats = compute_player_stats(history)
    seen = {pid for pid, count in appearances.items() if count}

    assert {s.key for s in stats} == seen
    for s in stats:
        assert s.games_played == appearances[s.key]
        assert s.wins + s.losses == s.games_played


def test_permuting_history_keeps_totals_and_order():
    history = [
        game([ALICE, BOB], [CARA, DAN], 11, 9),
        game([ALICE], [CARA], 7, 11),
        game([BOB, CARA], [DAN], 11, 2),
        game([DAN], [ALICE], 11, 13),
    ]
    expected = compute_player_stats(history)

    for perm in itertools.permutations(history):
        result = compute_player_stats(list(perm))
        assert totals(result) == totals(expected)
        assert [s.key for s in result] == [s.key for s in expected]


def test_repeated_calls_are_equal_and_input_untouched():
    history = [game([ALICE], [BOB], 11, 5), game([BOB], [CARA], 11, 7)]
    snapshot = list(history)

    first = compute_player_stats(history)
    second = compute_player_stats(history)

    assert first == second
    assert first is not second
    assert history == snapshot


def test_one_win_in_three_rounds_down():
    history = [
        game([ALICE], [BOB], 11, 5),
        game([ALICE], [BOB], 5, 11),
        game([ALICE], [BOB], 4, 11),
    ]
    alice = by_key(compute_player_stats(history))["p-alice"]

    assert alice.win_rate == 33.3
    assert alice.avg_points == 6.7


@pytest.mark.parametrize(
    "numerator, denominator, scale, expected",
    [
        (1, 3, 100, 33.3),
        (2, 3, 100, 66.7),
        (1, 16, 100, 6.3),   # 6.25 rounds half up
        (1, 8, 1, 0.1),      # 0.125 -> 0.1
        (1, 20, 1, 0.1),     # 0.05 rounds half up
        (7, 2, 1, 3.5),
        (0, 4, 100, 0.0),
        (5, 0, 1, 0.0),
    ],
)
def test_round_one_decimal(numerator, denominator, scale, expected):
    assert round_one_decimal(numerator, denominator, scale=scale) == expected


def test_half_boundary_win_rate_rounds_up():
    history = [game([ALICE], [BOB], 11, 3)] + [
        game([ALICE], [BOB], 3, 11) for _ in range(15)
    ]
    alice = by_key(compute_player_stats(history))["p-alice"]

    assert alice.win_rate == 6.3


def test_half_boundary_avg_points_rounds_up():
    history = [game([ALICE], [BOB], 1, 11)] + [
        game([ALICE], [BOB], 0, 11) for _ in range(19)
    ]
    alice = by_key(compute_player_stats(history))["p-alice"]

    assert alice.total_points == 1
    assert alice.avg_points == 0.1


def test_rank_handles_unplayed_accumulator():
    idle = PlayerStat(player=PlayerRef(name="Idle", id="p-idle"))
    busy = PlayerStat(player=ALICE, games_played=1, wins=1, win_rate=100.0)

    assert rank_player_stats([idle, busy]) == [busy, idle]
    assert idle.win_rate == 0.0 and idle.avg_points == 0.0
