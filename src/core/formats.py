"""
Round-robin match generation and participant resolution.
"""
import logging
from itertools import combinations
from typing import Dict, List, Optional

from core.models import DISCIPLINES, Match, Participant, ROUND_ROBIN, generate_id

logger = logging.getLogger(__name__)


def generate_round_robin(teams, players, disciplines=None) -> List[Match]:
    """
    Generate every round-robin match of the tournament.

    Team disciplines pair every two teams, individual disciplines every two
    players. Pairs are unordered (i < j) and follow input order.
    """
    if disciplines is None:
        disciplines = DISCIPLINES

    matches = []
    for discipline in disciplines:
        entrants = teams if discipline.is_team else players
        if len(entrants) < 2:
            logger.warning("Discipline %s has fewer than 2 entrants (%d). Skipping match generation.",
                           discipline.id, len(entrants))
            continue
        for first, second in combinations(entrants, 2):
            matches.append(Match(
                id=generate_id(),
                discipline_id=discipline.id,
                player1_id=first.id,
                player2_id=second.id,
                phase=ROUND_ROBIN,
            ))
    logger.info("Generated %d round-robin matches across %d disciplines", len(matches), len(disciplines))
    return matches


def resolve_participant(participant_id: str, is_team: bool, teams_by_id: Dict,
                        players_by_id: Optional[Dict] = None) -> Optional[Participant]:
    """
    Resolve a raw match participant id for a discipline.

    Returns None for an empty id or when the referenced team or player no
    longer exists. Bracket matches always hold player ids, so callers pass
    ``is_team=False`` for them regardless of the discipline.
    """
    if not participant_id:
        return None
    if is_team:
        team = teams_by_id.get(participant_id)
        return Participant.team(team) if team else None
    if players_by_id is not None and participant_id not in players_by_id:
        return None
    return Participant.individual(participant_id)


def match_uses_teams(match, discipline) -> bool:
    """Only round-robin matches of team disciplines reference team ids."""
    return bool(discipline and discipline.is_team and match.phase == ROUND_ROBIN)


def participant_player_ids(participant_id: str, teams_by_id: Dict) -> List[str]:
    """Underlying player ids of a participant id, whichever kind it is."""
    if not participant_id:
        return []
    team = teams_by_id.get(participant_id)
    if team:
        return list(team.player_ids)
    return [participant_id]


def involves_player(match, player_id: str, teams_by_id: Dict) -> bool:
    return any(player_id in participant_player_ids(pid, teams_by_id) for pid in match.participant_ids)
