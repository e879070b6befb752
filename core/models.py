"""
Report data structures for the LexAudit security engine.

SecurityIssue, SecurityReport and GasReport are plain values derived from a
single source snapshot.  ``to_dict()`` renders the camelCase payload shape
used by the API layer and the stored analysis records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(Enum):
    """Severity of a security finding"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class GasRisk(Enum):
    """Risk levels for gas usage"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class SecurityIssue:
    """One triggered security rule."""
    severity: Severity
    type: str
    description: str
    recommendation: str
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value,
            "type": self.type,
            "description": self.description,
            "recommendation": self.recommendation,
        }
        if self.location is not None:
            data["location"] = self.location
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecurityIssue":
        return cls(
            severity=Severity(data["severity"]),
            type=data["type"],
            description=data["description"],
            recommendation=data["recommendation"],
            location=data.get("location"),
        )


@dataclass
class SecurityReport:
    """Outcome of auditing one contract: one issue or passed check per rule."""
    risk_score: int
    issues: List[SecurityIssue] = field(default_factory=list)
    summary: str = ""
    passed_checks: List[str] = field(default_factory=list)

    def severity_counts(self) -> Dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskScore": self.risk_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary,
            "passedChecks": list(self.passed_checks),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecurityReport":
        """Rebuild a report from its ``to_dict()`` payload."""
        return cls(
            risk_score=data["riskScore"],
            issues=[SecurityIssue.from_dict(issue) for issue in data.get("issues", [])],
            summary=data.get("summary", ""),
            passed_checks=list(data.get("passedChecks", [])),
        )


@dataclass(frozen=True)
class GasPatterns:
    """Raw pattern counts behind a gas report"""
    loops: int = 0
    external_calls: int = 0
    storage_operations: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "loops": self.loops,
            "externalCalls": self.external_calls,
            "storageOperations": self.storage_operations,
        }


@dataclass
class GasReport:
    """Gas-usage heuristic result, independent of the security report."""
    gas_risk: GasRisk
    patterns: GasPatterns
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gasRisk": self.gas_risk.value,
            "patterns": self.patterns.to_dict(),
            "recommendations": list(self.recommendations),
        }
