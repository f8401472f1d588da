"""
Individual standings computed from completed round-robin matches.
"""
import logging
from typing import List, Optional

from core.formats import match_uses_teams, resolve_participant
from core.models import (DISCIPLINES, DRAW_POINTS, LOSS_POINTS, OVERALL, ROUND_ROBIN, WIN_POINTS,
                         StandingRow, get_discipline)

logger = logging.getLogger(__name__)


def _empty_rows(players):
    return {p.id: StandingRow(player_id=p.id, player_name=p.name) for p in players}


def _sort_rows(rows) -> List[StandingRow]:
    # sorted() is stable: equal points and diff keep roster order
    return sorted(rows, key=lambda row: (-row.points, -row.diff))


def _match_outcome(score1: int, score2: int):
    """Return (points1, points2, won1, won2) for a finished match."""
    if score1 > score2:
        return WIN_POINTS, LOSS_POINTS, 1, 0
    if score2 > score1:
        return LOSS_POINTS, WIN_POINTS, 0, 1
    return DRAW_POINTS, DRAW_POINTS, 0, 0


def _credit(row: StandingRow, points: int, won: int, lost: int, diff: int):
    row.played += 1
    row.points += points
    row.won += won
    row.lost += lost
    row.diff += diff


def compute_discipline_standings(matches, players, teams, discipline_id: str,
                                 disciplines=None) -> List[StandingRow]:
    """
    Rank every player for one discipline.

    Only completed round-robin matches count. A team result is credited in full
    to each team member. Matches referencing a missing team or player are
    skipped.
    """
    discipline = get_discipline(discipline_id, disciplines)
    rows = _empty_rows(players)
    teams_by_id = {t.id: t for t in teams}

    for match in matches:
        if match.phase != ROUND_ROBIN or not match.is_completed or match.discipline_id != discipline_id:
            continue
        if match.score1 is None or match.score2 is None:
            continue

        is_team = match_uses_teams(match, discipline)
        side1 = resolve_participant(match.player1_id, is_team, teams_by_id, rows)
        side2 = resolve_participant(match.player2_id, is_team, teams_by_id, rows)
        if side1 is None or side2 is None:
            logger.debug("Skipping match %s with an unknown participant", match.id)
            continue

        points1, points2, won1, won2 = _match_outcome(match.score1, match.score2)
        diff = match.score1 - match.score2

        for player_id in side1.player_ids:
            if player_id in rows:
                _credit(rows[player_id], points1, won1, won2, diff)
        for player_id in side2.player_ids:
            if player_id in rows:
                _credit(rows[player_id], points2, won2, won1, -diff)

    return _sort_rows(rows.values())


def compute_overall_standings(matches, players, teams, disciplines=None) -> List[StandingRow]:
    """Sum each player's per-discipline standings across the whole catalog."""
    if disciplines is None:
        disciplines = DISCIPLINES

    overall = _empty_rows(players)
    for discipline in disciplines:
        for row in compute_discipline_standings(matches, players, teams, discipline.id, disciplines):
            overall[row.player_id].add(row)

    # Rebuild in roster order so ties don't depend on the last discipline's ranking
    return _sort_rows(overall[p.id] for p in players)


def compute_standings(matches, players, teams, discipline_id: Optional[str] = OVERALL,
                      disciplines=None) -> List[StandingRow]:
    """Standings for ``discipline_id``, or across all disciplines for ``"overall"``."""
    if discipline_id is None or discipline_id == OVERALL:
        return compute_overall_standings(matches, players, teams, disciplines)
    return compute_discipline_standings(matches, players, teams, discipline_id, disciplines)
