"""
Score entry for a single match.
"""
import math

from core.elimination import next_bracket_match
from core.models import ROUND_ROBIN


class ScoreError(ValueError):
    """A score could not be applied to a match."""


def parse_score(value):
    """
    Parse a raw score. Returns None for anything that is not a finite
    non-negative integer (empty strings, NaN, floats with a fraction, ...).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int) or value < 0:
        return None
    return value


def determine_winner(match, score1, score2):
    """Winner id for the given scores, or None on a tie."""
    if score1 > score2:
        return match.player1_id
    if score2 > score1:
        return match.player2_id
    return None


def _check_not_locked(match, matches):
    """A bracket result is final once the match its winner moved on to has been played."""
    if matches is None:
        return
    later = next_bracket_match(matches, match)
    if later is not None and later.is_completed:
        raise ScoreError(f'{later.round_label or later.phase} has already been played')


def record_score(match, raw_score1, raw_score2, matches=None):
    """
    Complete ``match`` with the given scores and return it.

    Raises ScoreError when either score is not provided, when a side of the
    match is still undecided, when an elimination match ends in a tie, or
    when ``matches`` shows that the next bracket match was already played.
    """
    score1 = parse_score(raw_score1)
    score2 = parse_score(raw_score2)
    if score1 is None or score2 is None:
        raise ScoreError('Both scores must be whole non-negative numbers')
    if not match.is_resolved:
        raise ScoreError('Both participants must be known before scoring this match')
    if match.phase != ROUND_ROBIN and score1 == score2:
        raise ScoreError('Elimination matches cannot end in a tie')
    _check_not_locked(match, matches)

    match.score1 = score1
    match.score2 = score2
    match.is_completed = True
    match.winner_id = determine_winner(match, score1, score2)
    return match


def clear_score(match, matches=None):
    _check_not_locked(match, matches)
    match.score1 = None
    match.score2 = None
    match.is_completed = False
    match.winner_id = None
    return match
