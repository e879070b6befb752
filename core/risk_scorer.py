"""
Risk scoring and narrative summary for security findings.
"""

from typing import Dict, Sequence

from core.models import SecurityIssue, Severity

SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
}

MAX_RISK_SCORE = 100

NO_ISSUES_SUMMARY = "No security issues detected. Contract appears to follow security best practices."


def calculate_risk_score(issues: Sequence[SecurityIssue]) -> int:
    """Weighted sum of issue severities, capped at 100."""
    score = sum(SEVERITY_WEIGHTS[issue.severity] for issue in issues)
    return min(MAX_RISK_SCORE, score)


def generate_summary(issues: Sequence[SecurityIssue], risk_score: int) -> str:
    if risk_score == 0:
        return NO_ISSUES_SUMMARY

    counts = {severity: 0 for severity in Severity}
    for issue in issues:
        counts[issue.severity] += 1

    summary = f"Security audit found {len(issues)} issue(s) with a risk score of {risk_score}/100. "

    if counts[Severity.CRITICAL] > 0:
        summary += f"{counts[Severity.CRITICAL]} critical, "
    if counts[Severity.HIGH] > 0:
        summary += f"{counts[Severity.HIGH]} high, "
    if counts[Severity.MEDIUM] > 0:
        summary += f"{counts[Severity.MEDIUM]} medium, "
    if counts[Severity.LOW] > 0:
        summary += f"{counts[Severity.LOW]} low severity issues. "

    if risk_score > 50:
        summary += "Immediate attention and fixes recommended before deployment."
    elif risk_score > 20:
        summary += "Review and address issues before production deployment."
    else:
        summary += "Minor issues detected, review recommended."

    return summary
