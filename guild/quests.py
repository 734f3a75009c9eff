"""Quest rules for Adventurers Guild.

This module provides the quest-side helpers the matching engine builds on:
submission validation, rank-gated unlocking, skill overlap and category
relationships.
"""

from typing import Iterable, List, Tuple

from guild.ranks import RANKS, rank_value


# Quest difficulty reuses the rank scale
QUEST_DIFFICULTIES = list(RANKS)

QUEST_CATEGORIES = [
    "frontend",
    "backend",
    "fullstack",
    "mobile",
    "devops",
    "qa",
    "design"
]

# Specializations that earn partial credit on neighbouring categories
RELATED_CATEGORIES = {
    "frontend": ["fullstack", "design"],
    "backend": ["fullstack", "devops"],
    "fullstack": ["frontend", "backend"],
    "mobile": ["frontend"],
    "devops": ["backend"],
    "qa": ["backend", "frontend"]
}

SUBMISSION_MAX_LENGTH = 5000


def validate_submission(content: str, max_length: int = SUBMISSION_MAX_LENGTH) -> Tuple[bool, str]:
    """Validate quest submission content against length constraints.

    Args:
        content: The submission text (usually a repository or demo link plus notes)
        max_length: Maximum allowed length (default: 5000)

    Returns:
        Tuple of (is_valid, error_message)
        - is_valid: True if validation passes, False otherwise
        - error_message: Empty string if valid, error description if invalid
    """
    if not content or not content.strip():
        return False, "Submission cannot be empty"

    if len(content) > max_length:
        return False, f"Submission must be between 1 and {max_length} characters (current: {len(content)})"

    return True, ""


def is_quest_unlocked(user_rank: str, required_rank: str | None) -> bool:
    """Check whether a user's rank meets a quest's rank requirement.

    Args:
        user_rank: The user's current rank label
        required_rank: The quest's minimum rank, or None for open quests

    Returns:
        True if the quest is open to the user, False if locked
    """
    if not required_rank:
        return True
    return rank_value(user_rank) >= rank_value(required_rank)


def collect_user_skills(profile: dict) -> List[str]:
    """Return the user's primary skills followed by skill-tree skill ids."""
    skills = list(profile.get("primary_skills") or [])
    for progress in profile.get("skill_progress") or []:
        skills.append(progress.get("skill_id") or "")
    return skills


def _skills_overlap(required: str, owned: str) -> bool:
    required = required.lower()
    owned = owned.lower()
    return owned in required or required in owned


def count_matching_skills(required_skills: Iterable[str], user_skills: Iterable[str]) -> int:
    """Count required skills covered by at least one of the user's skills.

    A skill covers a requirement when either name contains the other,
    ignoring case, so "react" covers "React Native" and vice versa. Empty
    skill names never cover anything.
    """
    user_skills = [skill for skill in user_skills if skill]
    return sum(
        1 for required in required_skills
        if any(_skills_overlap(required, owned) for owned in user_skills)
    )


def is_related_category(specialization: str | None, category: str | None) -> bool:
    if not specialization or not category:
        return False
    return category.lower() in RELATED_CATEGORIES.get(specialization.lower(), [])
