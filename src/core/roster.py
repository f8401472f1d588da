"""
Roster balancing: pair players into weight-8 teams for the 2vs2 disciplines.
"""
import logging
from typing import List

from core.models import Team, generate_id

logger = logging.getLogger(__name__)

TARGET_TEAM_WEIGHT = 8


def _team_name(p1, p2) -> str:
    return f"{p1.name.split(' ')[0]} & {p2.name.split(' ')[0]}"


def _make_team(p1, p2) -> Team:
    team = Team(
        id=generate_id(),
        name=_team_name(p1, p2),
        player_ids=[p1.id, p2.id],
        total_weight=p1.weight + p2.weight,
    )
    p1.team_id = team.id
    p2.team_id = team.id
    return team


def balance_roster(players) -> List[Team]:
    """
    Partition players into balanced two-player teams.

    Each weight-6 player is paired index-wise with a weight-2 player, then the
    weight-4 players are paired two by two, both in input order. Every team
    weighs 8. Members get the new team id written to ``team_id``, so callers
    must persist the players together with the returned teams.

    Players left over when a pool runs out stay without a team.
    """
    heavy = [p for p in players if p.weight == 6]
    medium = [p for p in players if p.weight == 4]
    light = [p for p in players if p.weight == 2]
    other = [p for p in players if p.weight not in (2, 4, 6)]

    if len(heavy) != len(light):
        logger.warning(
            "Unbalanced roster: %d weight-6 vs %d weight-2 players, %d left without a team",
            len(heavy), len(light), abs(len(heavy) - len(light)))
    if len(medium) % 2:
        logger.warning("Odd number of weight-4 players (%d), one left without a team", len(medium))
    if other:
        logger.warning("Ignoring %d players with unsupported weight: %s",
                       len(other), [p.id for p in other])

    teams = []

    for p1, p2 in zip(heavy, light):
        teams.append(_make_team(p1, p2))

    for i in range(0, len(medium) - 1, 2):
        teams.append(_make_team(medium[i], medium[i + 1]))

    logger.info("Balanced %d players into %d teams", len(players), len(teams))
    return teams
