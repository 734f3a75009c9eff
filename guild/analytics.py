"""Progression metrics for Adventurers Guild.

Every XP award becomes a small batch of Datadog series built from the
result of ``ranks.award_xp``: the XP granted, the new total, progress toward
the next rank and, when a threshold was crossed, a rank-up count. Sending is
fail-open; a metrics outage never blocks an award.
"""

import logging
import time

import requests

from guild.ranks import get_rank_progress

logger = logging.getLogger(__name__)

DATADOG_API_URL = "https://api.datadoghq.com/api/v1/series"


def _gauge(metric: str, value: float, timestamp: int, tags: list) -> dict:
    return {"metric": metric, "type": "gauge", "points": [[timestamp, value]], "tags": tags}


def build_progression_series(progression: dict, timestamp: int) -> list:
    """Turn an ``award_xp`` result into Datadog series.

    Args:
        progression: Result of ``award_xp`` (xp, reward, rank, previous_rank,
            ranked_up)
        timestamp: Unix timestamp for all points

    Returns:
        List of series dicts; gauges are tagged with the rank after the
        award, the rank-up count with the ranks left and reached
    """
    tags = [f"rank:{progression['rank']}"]
    series = [
        _gauge("guild.xp.awarded", progression["reward"], timestamp, tags),
        _gauge("guild.xp.total", progression["xp"], timestamp, tags),
        _gauge("guild.rank.progress", get_rank_progress(progression["xp"]), timestamp, tags)
    ]

    if progression["ranked_up"]:
        series.append({
            "metric": "guild.rank_up",
            "type": "count",
            "points": [[timestamp, 1]],
            "tags": [f"from:{progression['previous_rank']}", f"to:{progression['rank']}"]
        })

    return series


def submit_series(series: list, datadog_api_key: str, timeout: float) -> bool:
    """POST series to Datadog; returns False instead of raising on failure."""
    try:
        response = requests.post(
            DATADOG_API_URL,
            json={"series": series},
            headers={"DD-API-KEY": datadog_api_key},
            timeout=timeout
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.warning(f"Dropped {len(series)} progression series: {e}")
        return False

    logger.debug(f"Submitted {len(series)} progression series")
    return True


def record_xp_award(progression: dict, settings, now: float | None = None) -> bool:
    """
    Report an XP award to Datadog.

    Args:
        progression: Result of ``ranks.award_xp``
        settings: Runtime settings; nothing is sent without a Datadog key
        now: Unix time of the award (default: current time)

    Returns:
        True if the series were accepted, False if skipped or sending failed

    Example:
        >>> record_xp_award(award_xp(900, 200), settings)
        True
    """
    if not settings.datadog_api_key:
        logger.debug("No Datadog API key configured; skipping progression metrics")
        return False

    timestamp = int(time.time() if now is None else now)
    series = build_progression_series(progression, timestamp)
    return submit_series(series, settings.datadog_api_key, settings.request_timeout)
