"""Reduce a vulnerability report to policy violations."""

import logging
from typing import Iterable, List, Mapping

from .matching import matches_policy
from .models import FilterResult, MetricsEntry, VulnerableChange
from .scoring import max_severity, meets_threshold

logger = logging.getLogger(__name__)


class ViolationFilter:
    """Applies policy lists and a severity threshold to vulnerable changes."""

    def __init__(self, policies: Mapping[str, List[str]], min_severity: str = "critical"):
        self.policies = policies
        self.min_severity = min_severity

    def apply(self, changes: Iterable[VulnerableChange]) -> FilterResult:
        """
        Filter changes to those violating policy.

        A change is kept when its ecosystem has a policy, its package is listed
        in that policy, and at least one vulnerability meets the threshold.
        Only qualifying vulnerabilities are kept on the change. Metrics are
        recorded for the first change seen for each package name.

        Returns:
            FilterResult with changes in input order
        """
        result = FilterResult()

        for change in changes:
            ecosystem = change.ecosystem.lower() if change.ecosystem else None

            if not ecosystem or ecosystem not in self.policies:
                logger.debug(f"Skipping {change.name}: no policy for ecosystem {ecosystem}")
                continue

            if not matches_policy(change.name, self.policies[ecosystem]):
                continue

            vulns = [v for v in change.vulnerabilities if meets_threshold(v.severity, self.min_severity)]
            if not vulns:
                logger.debug(f"Skipping {change.name}: no vulnerability at or above {self.min_severity}")
                continue

            result.filtered.append(change.narrowed(vulns))

            # First occurrence of a package name wins
            if change.name not in result.metrics:
                result.metrics[change.name] = MetricsEntry(
                    ecosystem=ecosystem,
                    current_version=change.version,
                    vulnerability_count=len(vulns),
                    max_severity=max_severity(v.severity for v in vulns),
                )

        return result


def filter_vulnerabilities(
    changes: Iterable[VulnerableChange],
    policies: Mapping[str, List[str]],
    min_severity: str = "critical",
) -> FilterResult:
    """Filter ``changes`` against ``policies``; see ViolationFilter.apply."""
    return ViolationFilter(policies, min_severity).apply(changes)
