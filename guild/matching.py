"""Quest matching for Adventurers Guild.

Two halves live here:

- the scoring engine, pure functions that rate how well a quest fits an
  adventurer (``calculate_match_score``) and rank a list of quests
  (``match_quests``, ``recommend_quests``);
- the client for the hosted matching endpoint (``get_matched_quests``,
  ``get_quest_recommendations``), which performs exactly one request per call
  and never retries.
"""

import logging
import math
from typing import List

import requests
from pydantic import ValidationError

from guild.config import Settings, load_settings
from guild.errors import ApplicationFailure, FetchFailure, InvalidArgument
from guild.quests import collect_user_skills, count_matching_skills, is_related_category
from guild.ranks import RANKS
from guild.schemas import MatchingResponse, MatchProfile, RecommendationRequest, RecommendationResponse

logger = logging.getLogger(__name__)

MATCHED_QUESTS_ERROR = "Failed to fetch matched quests"
RECOMMENDATIONS_ERROR = "Failed to fetch recommendations"

ADVENTURER_ROLE = "adventurer"

# Score weights, summing to 100
RANK_WEIGHT = 25
SKILL_WEIGHT = 35
CATEGORY_WEIGHT = 20
RELATED_CATEGORY_WEIGHT = 10
COMPLETION_WEIGHT = 20
REWARD_WEIGHT = 10

# Points lost per rank the user is above the quest
RANK_GAP_PENALTY = 5
# One unit of monetary reward counts as this much XP
MONETARY_TO_XP = 100
REWARD_SCALE = 250


def _rank_index(rank: str | None) -> int:
    # Unknown or missing labels sit at the bottom of the scale
    return RANKS.index(rank) if rank in RANKS else 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _rank_points(user_rank: str | None, difficulty: str | None) -> float:
    gap = _rank_index(user_rank) - _rank_index(difficulty)
    if gap < 0:
        return 0
    return max(0, RANK_WEIGHT - gap * RANK_GAP_PENALTY)


def _skill_points(required_skills: list, user_skills: list) -> float:
    if not required_skills:
        return SKILL_WEIGHT
    matching = count_matching_skills(required_skills, user_skills)
    return matching / len(required_skills) * SKILL_WEIGHT


def _category_points(specialization: str | None, category: str | None) -> float:
    if specialization and category and specialization.lower() == category.lower():
        return CATEGORY_WEIGHT
    if is_related_category(specialization, category):
        return RELATED_CATEGORY_WEIGHT
    return 0


def _reward_points(quest: dict) -> float:
    xp_reward = quest.get("xp_reward") or 0
    monetary_reward = quest.get("monetary_reward") or 0
    average_reward = (xp_reward + monetary_reward * MONETARY_TO_XP) / 2
    # A negative reward never subtracts from the other factors
    return min(REWARD_WEIGHT, max(0, average_reward / REWARD_SCALE))


def calculate_match_score(profile: dict, quest: dict) -> int:
    """
    Score how well a quest fits an adventurer, from 0 to 100.

    The score adds five factors:
    - rank compatibility (0-25): full points on an exact rank match, 5 points
      less for every rank the user is above the quest, nothing when the quest
      is harder than the user's rank
    - skill coverage (0-35): share of required skills the user has; quests
      with no required skills get full points
    - category alignment (0-20): 20 when the user's specialization is the
      quest category, 10 for a related category
    - completion rate (0-20): proportional to the user's completion rate
    - reward attractiveness (0-10): average of XP and monetary reward, scaled

    Args:
        profile: Matching profile dict (rank, primary_skills, skill_progress,
            specialization, quest_completion_rate)
        quest: Quest dict (difficulty, required_skills, quest_category,
            xp_reward, monetary_reward)

    Returns:
        Integer match score between 0 and 100
    """
    score = _rank_points(profile.get("rank"), quest.get("difficulty"))
    score += _skill_points(quest.get("required_skills") or [], collect_user_skills(profile))
    score += _category_points(profile.get("specialization"), quest.get("quest_category"))

    completion_rate = profile.get("quest_completion_rate")
    if completion_rate is not None:
        score += completion_rate / 100 * COMPLETION_WEIGHT

    score += _reward_points(quest)

    return min(100, max(0, _round_half_up(score)))


def _check_limit(limit: int, name: str = "limit") -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidArgument(f"{name} must be a positive integer (got {limit!r})")


def _validated_profile(profile: dict) -> dict:
    try:
        return MatchProfile.model_validate(profile).model_dump()
    except ValidationError as e:
        raise InvalidArgument(f"Invalid matching profile: {e.errors()[0]['msg']}") from e


def match_quests(profile: dict, quests: List[dict], limit: int = 10, role: str = ADVENTURER_ROLE) -> List[dict]:
    """
    Score quests for a user and return the best matches first.

    Only adventurers get matches; any other role gets an empty list. Quests
    with equal scores keep their input order.

    Args:
        profile: The user's matching profile
        quests: Available quests
        limit: Maximum number of matches to return
        role: The user's role

    Returns:
        Copies of the quests with a ``matchScore`` key, best first

    Raises:
        InvalidArgument: If limit is not positive or the profile is malformed
    """
    _check_limit(limit)
    if role != ADVENTURER_ROLE:
        return []

    profile = _validated_profile(profile)
    scored = [{**quest, "matchScore": calculate_match_score(profile, quest)} for quest in quests]
    scored.sort(key=lambda quest: quest["matchScore"], reverse=True)
    return scored[:limit]


def build_preference_counts(completed_quests: List[dict]) -> tuple[dict, dict]:
    """
    Count categories and required skills across a user's completed quests.

    Args:
        completed_quests: Quest dicts the user has completed

    Returns:
        Tuple of (category_counts, skill_counts)
    """
    category_counts = {}
    skill_counts = {}
    for quest in completed_quests:
        category = quest.get("quest_category")
        if category:
            category_counts[category] = category_counts.get(category, 0) + 1
        for skill in quest.get("required_skills") or []:
            skill_counts[skill] = skill_counts.get(skill, 0) + 1
    return category_counts, skill_counts


def calculate_recommendation_score(profile: dict, quest: dict, category_counts: dict) -> float:
    """Score a quest for recommendations based on the user's history.

    Unlike the match score this is unbounded: past quests in the same
    category, covered skills and larger rewards all keep adding points.
    """
    score = category_counts.get(quest.get("quest_category"), 0) * 10

    required_skills = quest.get("required_skills") or []
    score += count_matching_skills(required_skills, collect_user_skills(profile)) * 5

    gap = _rank_index(profile.get("rank")) - _rank_index(quest.get("difficulty"))
    if gap >= 0:
        score += 20 - gap * 3

    score += (quest.get("xp_reward") or 0) / 100
    if quest.get("monetary_reward"):
        score += quest["monetary_reward"] / 10

    return score


def recommend_quests(profile: dict, quests: List[dict], completed_quests: List[dict],
                     num_recommendations: int = 5) -> List[dict]:
    """
    Recommend quests similar to what the user has completed before.

    Returns:
        Copies of the quests with a ``recommendationScore`` key, best first,
        at most ``num_recommendations`` long
    """
    _check_limit(num_recommendations, "num_recommendations")
    profile = _validated_profile(profile)
    category_counts, _ = build_preference_counts(completed_quests)

    scored = [
        {**quest, "recommendationScore": calculate_recommendation_score(profile, quest, category_counts)}
        for quest in quests
    ]
    scored.sort(key=lambda quest: quest["recommendationScore"], reverse=True)
    return scored[:num_recommendations]


def _read_payload(response, error_message: str) -> dict:
    """Return the JSON body of a successful response or raise FetchFailure."""
    try:
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"{error_message}: {e}")
        raise FetchFailure(error_message) from e
    except ValueError as e:
        logger.error(f"{error_message}: response body is not JSON ({e})")
        raise FetchFailure(error_message) from e


def get_matched_quests(user_id: str, limit: int = 10, settings: Settings | None = None) -> List[dict]:
    """
    Fetch the best matching quests for a user from the matching service.

    Issues exactly one GET to ``{api_base_url}/matching`` with query
    parameters ``user_id`` and ``limit`` and returns the service's
    ``matches`` list unchanged, in the order the service sorted it.

    Args:
        user_id: The user's identifier
        limit: Maximum number of matches (positive)
        settings: Runtime settings (default: loaded from the environment)

    Returns:
        List of quest dicts, each with a ``matchScore``

    Raises:
        InvalidArgument: If user_id is empty or limit is not positive
        FetchFailure: If the service is unreachable, answers with a non-2xx
            status, or returns a malformed body
        ApplicationFailure: If the service answers ``success: false``; the
            message is the service's ``error``

    Example:
        >>> matches = get_matched_quests("user-123", 10)
        >>> [quest["matchScore"] for quest in matches]
        [95, 87]
    """
    if not user_id:
        raise InvalidArgument("user_id is required")
    _check_limit(limit)
    settings = settings or load_settings()

    try:
        response = requests.get(
            f"{settings.api_base_url}/matching",
            params={"user_id": user_id, "limit": limit},
            timeout=settings.request_timeout
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"{MATCHED_QUESTS_ERROR} for user {user_id}: {e}")
        raise FetchFailure(MATCHED_QUESTS_ERROR) from e

    payload = _read_payload(response, MATCHED_QUESTS_ERROR)

    try:
        parsed = MatchingResponse.model_validate(payload)
    except ValidationError as e:
        logger.error(f"{MATCHED_QUESTS_ERROR}: unexpected response shape ({e.error_count()} errors)")
        raise FetchFailure(MATCHED_QUESTS_ERROR) from e

    if not parsed.success:
        logger.error(f"Matching service rejected user {user_id}: {parsed.error}")
        raise ApplicationFailure(parsed.error or MATCHED_QUESTS_ERROR)

    matches = payload.get("matches") or []
    logger.info(f"Fetched {len(matches)} matched quests for user {user_id}")
    return matches


def get_quest_recommendations(user_id: str, num_recommendations: int = 5,
                              settings: Settings | None = None) -> List[dict]:
    """
    Fetch history-based quest recommendations for a user.

    Issues exactly one POST to ``{api_base_url}/matching`` with a JSON body
    of ``user_id`` and ``num_recommendations``.

    Raises:
        InvalidArgument: If the request fields are invalid
        FetchFailure: On transport errors, non-2xx status or malformed body
        ApplicationFailure: If the service answers ``success: false``
    """
    try:
        body = RecommendationRequest(user_id=user_id, num_recommendations=num_recommendations)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid recommendation request: {e.errors()[0]['msg']}") from e
    settings = settings or load_settings()

    try:
        response = requests.post(
            f"{settings.api_base_url}/matching",
            json=body.model_dump(),
            headers={"Content-Type": "application/json"},
            timeout=settings.request_timeout
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"{RECOMMENDATIONS_ERROR} for user {user_id}: {e}")
        raise FetchFailure(RECOMMENDATIONS_ERROR) from e

    payload = _read_payload(response, RECOMMENDATIONS_ERROR)

    try:
        parsed = RecommendationResponse.model_validate(payload)
    except ValidationError as e:
        logger.error(f"{RECOMMENDATIONS_ERROR}: unexpected response shape ({e.error_count()} errors)")
        raise FetchFailure(RECOMMENDATIONS_ERROR) from e

    if not parsed.success:
        logger.error(f"Matching service rejected recommendations for {user_id}: {parsed.error}")
        raise ApplicationFailure(parsed.error or RECOMMENDATIONS_ERROR)

    return payload.get("recommendations") or []
