"""Rank and XP progression for Adventurers Guild.

This module is the single source of truth for rank thresholds. It converts
accumulated XP into a rank label, the XP at which the next rank begins, and
progress toward that rank.
"""

from guild.errors import InvalidArgument


# XP required to reach each rank, lowest first
RANK_THRESHOLDS = [
    {"rank": "F", "threshold": 0},
    {"rank": "E", "threshold": 1000},
    {"rank": "D", "threshold": 3000},
    {"rank": "C", "threshold": 6000},
    {"rank": "B", "threshold": 10000},
    {"rank": "A", "threshold": 15000},
    {"rank": "S", "threshold": 25000}
]

RANKS = [entry["rank"] for entry in RANK_THRESHOLDS]

TERMINAL_RANK = RANKS[-1]

# nextRankXp value when there is no higher rank
NO_NEXT_RANK = -1


def _check_xp(xp: int, name: str = "xp") -> None:
    # bool is an int subclass but never a meaningful XP value
    if isinstance(xp, bool) or not isinstance(xp, int):
        raise InvalidArgument(f"{name} must be an integer (got {xp!r})")
    if xp < 0:
        raise InvalidArgument(f"{name} must not be negative (got {xp})")


def rank_value(rank: str) -> int:
    """Return the ordinal of a rank label, F=0 up to S=6.

    Args:
        rank: A rank label such as "F" or "B"

    Returns:
        Position of the rank in the total order F < E < D < C < B < A < S

    Raises:
        InvalidArgument: If the label is not a known rank
    """
    try:
        return RANKS.index(rank)
    except ValueError:
        raise InvalidArgument(f"Unknown rank: {rank!r}") from None


def get_rank_for_xp(xp: int) -> str:
    """Return the highest rank whose threshold is at or below ``xp``."""
    _check_xp(xp)
    for entry in reversed(RANK_THRESHOLDS):
        if xp >= entry["threshold"]:
            return entry["rank"]
    return RANKS[0]


def get_next_rank(xp: int) -> dict:
    """Calculate the current rank and the XP at which the next rank starts.

    A value exactly on a threshold belongs to that threshold's rank, so 1000
    XP is rank E, not F.

    Args:
        xp: Total experience points, a non-negative integer

    Returns:
        Dict with the caller-facing keys:
        - rank: current rank label
        - nextRankXp: threshold of the next rank, or -1 at rank S

    Raises:
        InvalidArgument: If xp is negative or not an integer

    Example:
        >>> get_next_rank(1500)
        {'rank': 'E', 'nextRankXp': 3000}
        >>> get_next_rank(30000)
        {'rank': 'S', 'nextRankXp': -1}
    """
    rank = get_rank_for_xp(xp)
    index = RANKS.index(rank)

    if index + 1 < len(RANK_THRESHOLDS):
        next_rank_xp = RANK_THRESHOLDS[index + 1]["threshold"]
    else:
        next_rank_xp = NO_NEXT_RANK

    return {"rank": rank, "nextRankXp": next_rank_xp}


def get_xp_to_next_rank(xp: int) -> int:
    """Return how much XP is still missing for the next rank (0 at rank S)."""
    next_rank_xp = get_next_rank(xp)["nextRankXp"]
    if next_rank_xp == NO_NEXT_RANK:
        return 0
    return next_rank_xp - xp


def get_rank_progress(xp: int) -> float:
    """Return progress toward the next rank as a percentage.

    Args:
        xp: Total experience points

    Returns:
        Value between 0.0 and 100.0; always 100.0 at the terminal rank
    """
    progression = get_next_rank(xp)
    if progression["nextRankXp"] == NO_NEXT_RANK:
        return 100.0

    current_threshold = RANK_THRESHOLDS[RANKS.index(progression["rank"])]["threshold"]
    span = progression["nextRankXp"] - current_threshold
    progress = (xp - current_threshold) / span * 100
    return min(100.0, max(0.0, progress))


def award_xp(current_xp: int, reward: int) -> dict:
    """Add a quest reward to a user's XP and report any rank change.

    Args:
        current_xp: XP before the reward
        reward: XP granted by the completed quest

    Returns:
        Dict with xp (new total), reward, rank, previous_rank and ranked_up

    Raises:
        InvalidArgument: If either value is negative or not an integer
    """
    _check_xp(current_xp, "current_xp")
    _check_xp(reward, "reward")

    previous_rank = get_rank_for_xp(current_xp)
    new_xp = current_xp + reward
    new_rank = get_rank_for_xp(new_xp)

    return {
        "xp": new_xp,
        "reward": reward,
        "rank": new_rank,
        "previous_rank": previous_rank,
        "ranked_up": new_rank != previous_rank
    }
