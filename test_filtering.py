#!/usr/bin/env python3
"""Tests for package matching, severity scoring and violation filtering."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import pytest

from policy_gate.filtering import ViolationFilter, filter_vulnerabilities
from policy_gate.matching import matches_policy
from policy_gate.models import VulnerableChange
from policy_gate.scoring import SEVERITY_LEVELS, max_severity, meets_threshold, severity_rank


def make_change(name, severities, ecosystem="npm", version="1.0.0", **extra):
    data = {
        "ecosystem": ecosystem,
        "name": name,
        "version": version,
        "vulnerabilities": [{"severity": s, "advisory_ghsa_id": f"GHSA-{i}"} for i, s in enumerate(severities)],
    }
    data.update(extra)
    return VulnerableChange.from_dict(data)


# Matching


def test_exact_match():
    assert matches_policy("left-pad", ["left-pad"])
    assert not matches_policy("left-pad", ["left-pad-extra"])


def test_namespaced_match_ignores_version():
    assert matches_policy("org.example:lib:1.2.3", ["org.example:lib"])
    assert matches_policy("org.example:lib", ["org.example:lib:9.9"])
    assert not matches_policy("org.example:lib", ["org.other:lib"])
    assert not matches_policy("org.example:lib", ["org.example:other"])


def test_namespace_rule_needs_separator_on_both_sides():
    assert not matches_policy("org.example:lib", ["org.example"])
    assert not matches_policy("org.example", ["org.example:lib"])


def test_match_is_existential():
    assert matches_policy("lodash", ["react", "lodash", "lodash"])
    assert not matches_policy("lodash", [])


# Scoring


def test_severity_rank_is_case_insensitive():
    assert severity_rank("CRITICAL") == 4
    assert severity_rank("High") == 3
    assert severity_rank("moderate") == 2
    assert severity_rank("low") == 1


def test_unknown_severities_rank_below_low():
    for label in (None, "", "unknown", "medium"):
        assert severity_rank(label) == 0
        assert severity_rank(label) < severity_rank("low")


@pytest.mark.parametrize("threshold", list(SEVERITY_LEVELS))
def test_meets_threshold_is_monotonic(threshold):
    for severity, rank in SEVERITY_LEVELS.items():
        assert meets_threshold(severity, threshold) == (rank >= SEVERITY_LEVELS[threshold])
    assert not meets_threshold(None, threshold)


def test_unknown_threshold_accepts_everything():
    assert meets_threshold(None, "bogus")
    assert meets_threshold("low", "bogus")


def test_max_severity():
    assert max_severity(["low", "High", "moderate"]) == "High"
    assert max_severity(["high", "HIGH"]) == "high"
    assert max_severity([]) == "low"
    assert max_severity([None, "unknown"]) == "low"


# Filtering


def test_violation_keeps_only_qualifying_vulnerabilities():
    change = make_change("lodash", ["high", "low"], version="4.17.0")
    result = filter_vulnerabilities([change], {"npm": ["lodash"]}, "high")

    assert len(result.filtered) == 1
    kept = result.filtered[0]
    assert [v.severity for v in kept.vulnerabilities] == ["high"]
    assert result.metrics["lodash"].to_dict() == {
        "ecosystem": "npm",
        "status": "unfixed",
        "current_version": "4.17.0",
        "vulnerability_count": 1,
        "max_severity": "high",
    }
    assert result.has_violations


def test_change_below_threshold_is_dropped():
    change = make_change("lodash", ["low"], version="4.17.0")
    result = filter_vulnerabilities([change], {"npm": ["lodash"]}, "high")

    assert result.filtered == []
    assert result.metrics == {}
    assert not result.has_violations


def test_ecosystem_without_policy_is_skipped():
    changes = [
        make_change("requests", ["critical"], ecosystem="pip"),
        make_change("lodash", ["critical"], ecosystem=None),
    ]
    result = filter_vulnerabilities(changes, {"npm": ["lodash", "requests"]}, "low")
    assert result.filtered == []
    assert result.metrics == {}


def test_empty_policy_list_matches_nothing():
    change = make_change("lodash", ["critical"])
    result = filter_vulnerabilities([change], {"npm": []}, "low")
    assert result.filtered == []


def test_ecosystem_is_case_insensitive():
    change = make_change("lodash", ["critical"], ecosystem="NPM")
    result = filter_vulnerabilities([change], {"npm": ["lodash"]}, "critical")
    assert len(result.filtered) == 1
    assert result.metrics["lodash"].ecosystem == "npm"


def test_unlisted_package_is_skipped():
    change = make_change("react", ["critical"])
    result = filter_vulnerabilities([change], {"npm": ["lodash"]}, "low")
    assert result.filtered == []


def test_output_preserves_input_order_and_extra_fields():
    changes = [
        make_change("b", ["critical"], change_type="added", manifest="package.json"),
        make_change("a", ["critical"]),
    ]
    result = filter_vulnerabilities(changes, {"npm": ["a", "b"]}, "critical")

    assert [c.name for c in result.filtered] == ["b", "a"]
    first = result.filtered[0].to_dict()
    assert first["change_type"] == "added"
    assert first["manifest"] == "package.json"
    assert first["vulnerabilities"][0]["advisory_ghsa_id"] == "GHSA-0"


def test_filter_does_not_modify_input_changes():
    change = make_change("lodash", ["high", "low"])
    filter_vulnerabilities([change], {"npm": ["lodash"]}, "high")
    assert len(change.vulnerabilities) == 2


def test_metrics_first_occurrence_wins():
    changes = [
        make_change("lodash", ["high"], version="4.17.0"),
        make_change("lodash", ["critical", "critical"], version="4.17.21"),
    ]
    result = filter_vulnerabilities(changes, {"npm": ["lodash"]}, "high")

    assert len(result.filtered) == 2
    entry = result.metrics["lodash"]
    assert entry.current_version == "4.17.0"
    assert entry.vulnerability_count == 1
    assert entry.max_severity == "high"


def test_metrics_first_occurrence_wins_across_ecosystems():
    changes = [
        make_change("core", ["critical"], ecosystem="npm"),
        make_change("core", ["critical"], ecosystem="pip"),
    ]
    result = filter_vulnerabilities(changes, {"npm": ["core"], "pip": ["core"]}, "critical")
    assert len(result.filtered) == 2
    assert list(result.metrics) == ["core"]
    assert result.metrics["core"].ecosystem == "npm"


def test_metrics_max_severity_keeps_reported_spelling():
    change = make_change("lodash", ["High", "CRITICAL", "critical"])
    result = filter_vulnerabilities([change], {"npm": ["lodash"]}, "high")
    assert result.metrics["lodash"].max_severity == "CRITICAL"
    assert result.metrics["lodash"].vulnerability_count == 3


def test_maven_identity_with_version_matches():
    change = make_change("org.example:lib:1.2.3", ["critical"], ecosystem="maven")
    result = filter_vulnerabilities([change], {"maven": ["org.example:lib"]}, "critical")
    assert len(result.filtered) == 1


def test_filtering_is_idempotent():
    policies = {"npm": ["lodash", "left-pad"], "maven": ["org.example:lib"]}
    changes = [
        make_change("lodash", ["critical", "low", "high"]),
        make_change("left-pad", ["moderate"]),
        make_change("org.example:lib:1.0", ["high"], ecosystem="maven"),
        make_change("react", ["critical"]),
    ]
    gate = ViolationFilter(policies, "high")
    first = gate.apply(changes)

    output_ecosystems = {c.ecosystem.lower() for c in first.filtered}
    second = ViolationFilter(
        {eco: packages for eco, packages in policies.items() if eco in output_ecosystems}, "high"
    ).apply(first.filtered)

    assert [c.to_dict() for c in second.filtered] == [c.to_dict() for c in first.filtered]
    assert {k: v.to_dict() for k, v in second.metrics.items()} == {
        k: v.to_dict() for k, v in first.metrics.items()
    }
