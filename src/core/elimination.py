"""
Six-player single elimination bracket: seeding from standings and winner propagation.

Layout (ranks are 0-indexed standings positions):

    Quarti A: rank 3 vs rank 4  ->  Semi A: rank 0 vs winner Quarti A
    Quarti B: rank 2 vs rank 5  ->  Semi B: rank 1 vs winner Quarti B
                                    Finalissima: winner Semi A vs winner Semi B
"""
import logging
from typing import Dict, List, Optional

from core.models import (FINAL, FINAL_LABEL, QUARTER_A, QUARTER_B, QUARTER_FINAL, ROUND_ROBIN,
                         SEMI_A, SEMI_B, SEMI_FINAL, Match, generate_id)

logger = logging.getLogger(__name__)

BRACKET_SIZE = 6

# (label, phase, rank of side 1, rank of side 2); None means decided by an earlier match
BRACKET_LAYOUT = [
    (QUARTER_A, QUARTER_FINAL, 3, 4),
    (QUARTER_B, QUARTER_FINAL, 2, 5),
    (SEMI_A, SEMI_FINAL, 0, None),
    (SEMI_B, SEMI_FINAL, 1, None),
    (FINAL_LABEL, FINAL, None, None),
]

# winner of source slot -> (target slot, side 1 or 2)
ADVANCEMENT = [
    (QUARTER_A, SEMI_A, 2),
    (QUARTER_B, SEMI_B, 2),
    (SEMI_A, FINAL_LABEL, 1),
    (SEMI_B, FINAL_LABEL, 2),
]

REASON_NOT_ENOUGH_PLAYERS = 'Not enough ranked players to generate the finals bracket.'
REASON_ALREADY_GENERATED = 'Finals bracket already generated for this discipline.'


class BracketResult:
    """Outcome of a seeding request: either ``ok`` with new matches or a refusal reason."""

    def __init__(self, ok, matches=None, reason=None):
        self.ok = ok
        self.matches = matches if matches else []
        self.reason = reason

    @classmethod
    def refused(cls, reason):
        return cls(False, reason=reason)

    def __repr__(self):
        if self.ok:
            return f"BracketResult(ok=True, matches={len(self.matches)})"
        return f"BracketResult(ok=False, reason={self.reason})"


def has_bracket(matches, discipline_id: str) -> bool:
    return any(m.discipline_id == discipline_id and m.phase != ROUND_ROBIN for m in matches)


def generate_bracket(discipline_id: str, standings, existing_matches=None) -> BracketResult:
    """
    Seed the five bracket matches for a discipline from its standings.

    Refuses (without creating anything) when fewer than six players are ranked
    or when the discipline already has bracket matches.
    """
    existing_matches = existing_matches or []

    if len(standings) < BRACKET_SIZE:
        logger.info("Bracket for %s refused: %d ranked players", discipline_id, len(standings))
        return BracketResult.refused(REASON_NOT_ENOUGH_PLAYERS)
    if has_bracket(existing_matches, discipline_id):
        logger.info("Bracket for %s refused: already generated", discipline_id)
        return BracketResult.refused(REASON_ALREADY_GENERATED)

    seeds = [row.player_id for row in standings[:BRACKET_SIZE]]

    matches = []
    for label, phase, rank1, rank2 in BRACKET_LAYOUT:
        matches.append(Match(
            id=generate_id(),
            discipline_id=discipline_id,
            player1_id=seeds[rank1] if rank1 is not None else '',
            player2_id=seeds[rank2] if rank2 is not None else '',
            phase=phase,
            round_label=label,
        ))

    logger.info("Generated finals bracket for %s with seeds %s", discipline_id, seeds)
    return BracketResult(True, matches)


def find_bracket_slots(matches, discipline_id: str) -> Dict[str, Optional[Match]]:
    """Map each slot label to the discipline's match for it (None when missing)."""
    slots = {label: None for label, _, _, _ in BRACKET_LAYOUT}
    for match in matches:
        if match.discipline_id != discipline_id or match.phase == ROUND_ROBIN:
            continue
        if match.phase == FINAL:
            label = FINAL_LABEL
        else:
            label = match.round_label
        if label in slots and slots[label] is None:
            slots[label] = match
    return slots


def next_bracket_match(matches, match) -> Optional[Match]:
    """The bracket match that the winner of ``match`` moves on to, if any."""
    if match.phase == ROUND_ROBIN:
        return None
    slots = find_bracket_slots(matches, match.discipline_id)
    for source_label, target_label, _ in ADVANCEMENT:
        source = slots.get(source_label)
        if source is not None and source.id == match.id:
            return slots.get(target_label)
    return None


def propagate_bracket_winners(matches, discipline_ids=None) -> List[Match]:
    """
    Advance completed bracket winners into the matches that wait for them.

    Works on copies and returns only the matches whose participants changed;
    the input list is left untouched. Running it again on the updated list
    returns nothing. Completed matches without a winner (ties) never advance.
    When a source match is cleared, the side it had filled in an unplayed
    target is emptied again.
    """
    if discipline_ids is None:
        discipline_ids = []
        for match in matches:
            if match.phase != ROUND_ROBIN and match.discipline_id not in discipline_ids:
                discipline_ids.append(match.discipline_id)

    changed = {}
    for discipline_id in discipline_ids:
        slots = find_bracket_slots(matches, discipline_id)
        for source_label, target_label, side in ADVANCEMENT:
            source = slots.get(source_label)
            target = slots.get(target_label)
            if source is None or target is None:
                continue
            if source.is_completed and source.winner_id:
                advancing = source.winner_id
            elif not source.is_completed and not target.is_completed:
                advancing = ''
            else:
                continue

            # Chain through copies so two updates to the final end up in one record
            current = changed.get(target.id, target)
            field = 'player1_id' if side == 1 else 'player2_id'
            if getattr(current, field) == advancing:
                continue

            updated = current.copy() if current is target else current
            setattr(updated, field, advancing)
            changed[target.id] = updated
            if advancing:
                logger.info("Advanced %s from %s to %s (%s)", advancing, source_label, target_label,
                            discipline_id)
            else:
                logger.info("Cleared %s slot fed by %s (%s)", target_label, source_label, discipline_id)

    return list(changed.values())


def get_bracket_display(matches, discipline_id: str) -> Dict:
    """
    Bracket data for display: the five slots in layout order plus the champion.
    """
    slots = find_bracket_slots(matches, discipline_id)
    rounds = []
    for label, phase, _, _ in BRACKET_LAYOUT:
        match = slots[label]
        rounds.append({
            'label': label,
            'phase': phase,
            'match': match,
            'is_placeholder': match is None or not match.is_resolved,
        })

    final = slots[FINAL_LABEL]
    champion = final.winner_id if final is not None and final.is_completed else None

    return {
        'discipline_id': discipline_id,
        'generated': any(slot is not None for slot in slots.values()),
        'rounds': rounds,
        'champion': champion,
    }
