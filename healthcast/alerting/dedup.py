"""
Alert Deduplication & Prioritization.

Warning sources overlap: a sudden change can also surface as a declining
trend, and composite alerts repeat across runs. Alerts with the same
(type, title, severity) are collapsed to the first one seen, and the
survivors are ordered most severe first, then most probable first.
"""

from typing import Iterable

import structlog

from healthcast.schemas.alert import Alert

logger = structlog.get_logger(__name__)


def deduplicate(alerts: Iterable[Alert]) -> list[Alert]:
    """Keep the first alert for every (type, title, severity) key."""
    seen: set[tuple[str, str, str]] = set()
    unique: list[Alert] = []
    n_dropped = 0

    for alert in alerts:
        key = alert.dedup_key
        if key in seen:
            n_dropped += 1
            continue
        seen.add(key)
        unique.append(alert)

    if n_dropped:
        logger.debug("alerts_deduplicated", kept=len(unique), dropped=n_dropped)
    return unique


def prioritize(alerts: Iterable[Alert]) -> list[Alert]:
    """Severity descending, then probability descending (stable)."""
    return sorted(alerts, key=lambda a: (a.severity.rank, a.probability), reverse=True)


def deduplicate_and_prioritize(alerts: Iterable[Alert]) -> list[Alert]:
    return prioritize(deduplicate(alerts))
