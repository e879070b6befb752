"""
Security auditor: parser -> rule engine -> scorer.

Stateless; one instance can be shared across concurrent audits.
"""

import logging
from typing import Optional

from core.contract_parser import ContractParser, ParsedContract
from core.models import SecurityReport
from core.risk_scorer import calculate_risk_score, generate_summary
from core.security_rules import SecurityRuleEngine

logger = logging.getLogger(__name__)


class SecurityAuditor:
    """Produces one SecurityReport per contract source."""

    def __init__(self, parser: Optional[ContractParser] = None, engine: Optional[SecurityRuleEngine] = None):
        self.parser = parser or ContractParser()
        self.engine = engine or SecurityRuleEngine()

    def audit_contract(self, source: str, parsed: Optional[ParsedContract] = None) -> SecurityReport:
        """Audit source text; parses it first unless a ParsedContract is supplied."""
        source = source or ""
        if parsed is None:
            parsed = self.parser.parse_contract(source)

        outcome = self.engine.evaluate(source, parsed)
        risk_score = calculate_risk_score(outcome.issues)

        logger.debug(
            f"Audited {parsed.contract_name}: {len(outcome.issues)} issue(s), "
            f"{len(outcome.passed_checks)} passed, score {risk_score}"
        )

        return SecurityReport(
            risk_score=risk_score,
            issues=outcome.issues,
            summary=generate_summary(outcome.issues, risk_score),
            passed_checks=outcome.passed_checks,
        )
