"""
Security Rule Engine

A fixed battery of textual heuristics over raw Solidity source.  Each rule is
a row of data (patterns, severity, report texts) rather than a branch of
code, so rules can be tested one at a time and new rows do not touch the
scoring logic.

The heuristics are deliberately coarse: proximity is judged across the whole
file, not per function.  Report texts are user-facing and must stay stable.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Tuple

from core.contract_parser import ParsedContract
from core.models import SecurityIssue, Severity


@dataclass(frozen=True)
class SecurityRule:
    """One pattern-based check and the texts it reports."""
    rule_id: str
    issue_type: str
    severity: Severity
    description: str
    recommendation: str
    passed_check: str
    required: Tuple[Pattern, ...] = ()
    forbidden: Tuple[Pattern, ...] = ()
    structural: Optional[Callable[[ParsedContract], bool]] = None

    def matches(self, source: str, parsed: ParsedContract) -> bool:
        """True when every required pattern hits and no forbidding pattern does."""
        if not all(p.search(source) for p in self.required):
            return False
        if any(p.search(source) for p in self.forbidden):
            return False
        if self.structural is not None and not self.structural(parsed):
            return False
        return True

    def to_issue(self) -> SecurityIssue:
        return SecurityIssue(
            severity=self.severity,
            type=self.issue_type,
            description=self.description,
            recommendation=self.recommendation,
        )


@dataclass
class RuleOutcome:
    """Issues and passed checks before scoring, both in rule order."""
    issues: List[SecurityIssue] = field(default_factory=list)
    passed_checks: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Rule table (evaluation order is part of the report format)
# ---------------------------------------------------------------------------

SECURITY_RULES: Tuple[SecurityRule, ...] = (
    SecurityRule(
        rule_id="reentrancy",
        issue_type="Reentrancy",
        severity=Severity.HIGH,
        description="Potential reentrancy vulnerability detected",
        recommendation="Use the checks-effects-interactions pattern or reentrancy guards",
        passed_check="Reentrancy protection",
        required=(
            re.compile(r'\.call\(|\.transfer\(|\.send\('),
            # state assignment somewhere after a .call(...) block closes
            re.compile(r'\.call\([^}]*\}[^}]*=\s*\w+'),
        ),
    ),
    SecurityRule(
        rule_id="tx-origin",
        issue_type="tx.origin Usage",
        severity=Severity.MEDIUM,
        description="Use of tx.origin for authorization",
        recommendation="Use msg.sender instead of tx.origin for authorization",
        passed_check="No tx.origin usage",
        required=(re.compile(r'tx\.origin'),),
    ),
    SecurityRule(
        rule_id="unchecked-call",
        issue_type="Unchecked Call",
        severity=Severity.MEDIUM,
        description="External calls without return value checking",
        recommendation="Always check return values of external calls",
        passed_check="External call return values checked",
        required=(re.compile(r'\.call\([^)]*\)\s*;'),),
    ),
    SecurityRule(
        rule_id="overflow",
        issue_type="Integer Overflow/Underflow",
        severity=Severity.HIGH,
        description="Arithmetic operations without overflow protection",
        recommendation="Use SafeMath library or Solidity 0.8+ with built-in checks",
        passed_check="Overflow protection implemented",
        required=(re.compile(r'[+\-*/]'),),
        forbidden=(
            re.compile(r'SafeMath|using.*for.*uint'),
            re.compile(r'pragma solidity.*0\.8'),
        ),
    ),
    SecurityRule(
        rule_id="access-control",
        issue_type="Access Control",
        severity=Severity.MEDIUM,
        description="Public functions without proper access control",
        recommendation="Implement proper access control modifiers for sensitive functions",
        passed_check="Access control implemented",
        forbidden=(re.compile(r'onlyOwner|onlyAdmin'),),
        structural=ParsedContract.has_public_functions,
    ),
    SecurityRule(
        rule_id="weak-randomness",
        issue_type="Weak Randomness",
        severity=Severity.MEDIUM,
        description="Use of predictable randomness sources",
        recommendation="Use commit-reveal schemes or oracle-based randomness",
        passed_check="No weak randomness detected",
        required=(
            re.compile(r'block\.timestamp|block\.difficulty|block\.number.*random', re.IGNORECASE),
        ),
    ),
    SecurityRule(
        rule_id="denial-of-service",
        issue_type="Denial of Service",
        severity=Severity.MEDIUM,
        description="Unbounded loops that could cause gas limit DoS",
        recommendation="Implement pagination or limit loop iterations",
        passed_check="No unbounded loops detected",
        required=(re.compile(r'for\s*\([^}]*\{[^}]*\}'),),
        # file-wide, not scoped to the loop body
        forbidden=(re.compile(r'break;|return;'),),
    ),
    SecurityRule(
        rule_id="time-dependence",
        issue_type="Time Dependence",
        severity=Severity.LOW,
        description="Logic depends on block timestamp which can be manipulated",
        recommendation="Avoid strict timestamp requirements or use time ranges",
        passed_check="No critical time dependencies",
        required=(
            re.compile(r'block\.timestamp.*require|block\.number.*require', re.IGNORECASE),
        ),
    ),
)


class SecurityRuleEngine:
    """Evaluates every rule independently against one contract."""

    def __init__(self, rules: Tuple[SecurityRule, ...] = SECURITY_RULES):
        self.rules = rules

    def evaluate(self, source: str, parsed: ParsedContract) -> RuleOutcome:
        outcome = RuleOutcome()
        source = source or ""
        for rule in self.rules:
            if rule.matches(source, parsed):
                outcome.issues.append(rule.to_issue())
            else:
                outcome.passed_checks.append(rule.passed_check)
        return outcome

    def get_rule(self, rule_id: str) -> Optional[SecurityRule]:
        return next((r for r in self.rules if r.rule_id == rule_id), None)
