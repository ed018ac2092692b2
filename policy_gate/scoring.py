"""Severity ranking and threshold checks."""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

# Higher number = more severe
SEVERITY_LEVELS = {
    "critical": 4,
    "high": 3,
    "moderate": 2,
    "low": 1,
}


def severity_rank(severity: Optional[str]) -> int:
    """Rank a severity label; unknown or missing labels rank 0."""
    if not severity:
        return 0
    return SEVERITY_LEVELS.get(severity.lower(), 0)


def is_known_severity(severity: Optional[str]) -> bool:
    return severity_rank(severity) > 0


def meets_threshold(severity: Optional[str], min_severity: str) -> bool:
    """Check whether ``severity`` is at least as severe as ``min_severity``."""
    return severity_rank(severity) >= severity_rank(min_severity)


def max_severity(severities: Iterable[Optional[str]]) -> str:
    """
    Return the most severe label in ``severities``.

    The running maximum starts at "low" and is only replaced by a strictly
    higher rank, so ties keep the first label seen.
    """
    current = "low"
    for severity in severities:
        if severity_rank(severity) > severity_rank(current):
            current = severity
    return current
