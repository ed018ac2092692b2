"""Data models for vulnerable changes, policy fetches and metrics."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import InputError


@dataclass
class Vulnerability:
    """One advisory reported against a package."""

    severity: Optional[str] = None  # critical | high | moderate | low
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Vulnerability":
        if not isinstance(data, dict):
            raise InputError(f"Vulnerability must be an object, got {type(data).__name__}")
        severity = data.get("severity")
        if severity is not None and not isinstance(severity, str):
            raise InputError(f"Vulnerability severity must be a string, got {severity!r}")
        return cls(severity=severity, raw=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


@dataclass
class VulnerableChange:
    """A reported package carrying one or more vulnerabilities.

    The original JSON object is kept in ``raw`` so fields this tool does not
    look at are written back unchanged and in their original order.
    """

    name: str
    ecosystem: Optional[str] = None
    version: Optional[str] = None
    vulnerabilities: List[Vulnerability] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "VulnerableChange":
        """Validate one entry of the vulnerable-changes array."""
        if not isinstance(data, dict):
            raise InputError(f"Change must be an object, got {type(data).__name__}")

        name = data.get("name")
        if not isinstance(name, str):
            raise InputError(f"Change is missing a string 'name': {data!r}")

        ecosystem = data.get("ecosystem")
        if ecosystem is not None and not isinstance(ecosystem, str):
            raise InputError(f"Ecosystem for {name} must be a string, got {ecosystem!r}")

        raw_vulns = data.get("vulnerabilities")
        if raw_vulns is None:
            raw_vulns = []
        if not isinstance(raw_vulns, list):
            raise InputError(f"Vulnerabilities for {name} must be a list")

        return cls(
            name=name,
            ecosystem=ecosystem,
            version=data.get("version"),
            vulnerabilities=[Vulnerability.from_dict(v) for v in raw_vulns],
            raw=dict(data),
        )

    def narrowed(self, vulnerabilities: List[Vulnerability]) -> "VulnerableChange":
        """Return a copy of this change carrying only ``vulnerabilities``."""
        return VulnerableChange(
            name=self.name,
            ecosystem=self.ecosystem,
            version=self.version,
            vulnerabilities=list(vulnerabilities),
            raw=dict(self.raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["vulnerabilities"] = [v.to_dict() for v in self.vulnerabilities]
        return data


@dataclass
class MetricsEntry:
    """Per-package aggregate for a policy violation."""

    ecosystem: str
    current_version: Optional[str]
    vulnerability_count: int
    max_severity: str
    status: str = "unfixed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ecosystem": self.ecosystem,
            "status": self.status,
            "current_version": self.current_version,
            "vulnerability_count": self.vulnerability_count,
            "max_severity": self.max_severity,
        }


@dataclass
class FilterResult:
    """Policy violations plus metrics keyed by package name."""

    filtered: List[VulnerableChange] = field(default_factory=list)
    metrics: Dict[str, MetricsEntry] = field(default_factory=dict)

    @property
    def has_violations(self) -> bool:
        return bool(self.filtered)


@dataclass
class FetchResult:
    """Outcome of retrieving one ecosystem's policy list.

    A failed retrieval still yields a result with an empty package list, so
    callers never need to handle exceptions from a policy source.
    """

    ecosystem: str
    packages: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
