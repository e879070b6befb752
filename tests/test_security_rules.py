"""
Tests for the security rule table, one rule at a time.

Rules are evaluated against hand-built ParsedContract values so these tests
do not depend on the grammar.
"""

import pytest

from core.contract_parser import FunctionInfo, ParsedContract
from core.models import Severity
from core.security_rules import SECURITY_RULES, SecurityRuleEngine


def _with_public_function():
    return ParsedContract(contract_name="C", functions=[FunctionInfo(name="f", visibility="public")])


def _without_functions():
    return ParsedContract(contract_name="C")


class TestRuleTable:

    def test_eight_rules_in_report_order(self):
        assert [r.issue_type for r in SECURITY_RULES] == [
            "Reentrancy",
            "tx.origin Usage",
            "Unchecked Call",
            "Integer Overflow/Underflow",
            "Access Control",
            "Weak Randomness",
            "Denial of Service",
            "Time Dependence",
        ]

    def test_severities(self):
        severities = {r.rule_id: r.severity for r in SECURITY_RULES}
        assert severities == {
            "reentrancy": Severity.HIGH,
            "tx-origin": Severity.MEDIUM,
            "unchecked-call": Severity.MEDIUM,
            "overflow": Severity.HIGH,
            "access-control": Severity.MEDIUM,
            "weak-randomness": Severity.MEDIUM,
            "denial-of-service": Severity.MEDIUM,
            "time-dependence": Severity.LOW,
        }

    def test_rule_ids_unique(self):
        ids = [r.rule_id for r in SECURITY_RULES]
        assert len(ids) == len(set(ids))


class TestRules:

    def setup_method(self):
        self.engine = SecurityRuleEngine()

    def _matches(self, rule_id, source, parsed=None):
        rule = self.engine.get_rule(rule_id)
        return rule.matches(source, parsed or _without_functions())

    # Reentrancy

    def test_reentrancy_assignment_after_call_block(self):
        source = """
        function withdraw() public {
            if (ok) {
                msg.sender.call("");
            }
            balances[msg.sender] = 0;
        }
        """
        assert self._matches("reentrancy", source)

    def test_reentrancy_needs_assignment_pattern(self):
        source = "function pay() public { payable(to).transfer(1); }"
        assert not self._matches("reentrancy", source)

    def test_reentrancy_no_external_call(self):
        assert not self._matches("reentrancy", "x = 1; } y = 2;")

    # tx.origin

    def test_tx_origin(self):
        assert self._matches("tx-origin", "require(tx.origin == owner);")
        assert not self._matches("tx-origin", "require(msg.sender == owner);")

    # Unchecked call

    def test_unchecked_call_statement(self):
        assert self._matches("unchecked-call", 'addr.call("");')
        assert self._matches("unchecked-call", "addr.call(data)  ;")

    def test_call_wrapped_in_require_not_flagged(self):
        assert not self._matches("unchecked-call", "require(addr.call(data));")

    def test_captured_result_still_flagged(self):
        # Textual check: a statement ending right after the call counts
        assert self._matches("unchecked-call", '(bool ok, ) = addr.call(""); require(ok);')

    # Overflow

    def test_overflow_arithmetic_pre_08(self):
        assert self._matches("overflow", "pragma solidity ^0.6.0; x = a + b;")

    def test_overflow_suppressed_by_08_pragma(self):
        assert not self._matches("overflow", "pragma solidity ^0.8.0; x = a + b;")

    def test_overflow_suppressed_by_safemath(self):
        assert not self._matches("overflow", "using SafeMath for uint256; x = a.add(b) - 1;")
        assert not self._matches("overflow", "using Math for uint; x = a - b;")

    def test_overflow_needs_operator(self):
        assert not self._matches("overflow", "pragma solidity ^0.6.0; contract A {}")

    # Access control

    def test_access_control_public_without_modifier(self):
        assert self._matches("access-control", "function f() public {}", _with_public_function())

    def test_access_control_suppressed_by_modifier_anywhere(self):
        source = "modifier onlyOwner() { _; } function f() public {}"
        assert not self._matches("access-control", source, _with_public_function())
        assert not self._matches("access-control", "onlyAdmin", _with_public_function())

    def test_access_control_uses_parsed_structure(self):
        # "public" in the text alone is not enough
        assert not self._matches("access-control", "function f() public {}", _without_functions())
        external_only = ParsedContract(functions=[FunctionInfo(name="g", visibility="external")])
        assert not self._matches("access-control", "function g() external {}", external_only)

    # Weak randomness

    @pytest.mark.parametrize("source", [
        "uint r = block.timestamp % 10;",
        "uint r = BLOCK.DIFFICULTY;",
        "uint n = block.number; uint random = n;",
    ])
    def test_weak_randomness(self, source):
        assert self._matches("weak-randomness", source)

    def test_block_number_alone_is_not_randomness(self):
        assert not self._matches("weak-randomness", "uint n = block.number;")

    # Denial of service

    def test_unbounded_loop(self):
        assert self._matches("denial-of-service", "for (uint i = 0; i < n; i++) { total += i; }")

    def test_loop_with_break_anywhere(self):
        source = "for (uint i = 0; i < n; i++) { total += i; } function g() public { return; }"
        assert not self._matches("denial-of-service", source)

    def test_no_loop(self):
        assert not self._matches("denial-of-service", "while (x) { x--; }")

    # Time dependence

    def test_time_dependence_same_line(self):
        assert self._matches("time-dependence", "uint t = block.timestamp; require(t > start);")

    def test_time_dependence_requires_same_line(self):
        assert not self._matches("time-dependence", "uint t = block.timestamp;\nrequire(t > start);")

    def test_require_before_timestamp_not_flagged(self):
        assert not self._matches("time-dependence", "require(block.timestamp > start);")


class TestSecurityRuleEngine:

    def setup_method(self):
        self.engine = SecurityRuleEngine()

    def test_every_rule_issue_or_passed(self):
        outcome = self.engine.evaluate("require(tx.origin == owner);", _without_functions())
        assert len(outcome.issues) + len(outcome.passed_checks) == 8

    def test_passed_labels_in_order(self):
        outcome = self.engine.evaluate("", _without_functions())
        assert outcome.issues == []
        assert outcome.passed_checks == [
            "Reentrancy protection",
            "No tx.origin usage",
            "External call return values checked",
            "Overflow protection implemented",
            "Access control implemented",
            "No weak randomness detected",
            "No unbounded loops detected",
            "No critical time dependencies",
        ]

    def test_issue_texts(self):
        outcome = self.engine.evaluate("require(tx.origin == owner);", _without_functions())
        assert len(outcome.issues) == 1
        issue = outcome.issues[0]
        assert issue.type == "tx.origin Usage"
        assert issue.severity == Severity.MEDIUM
        assert issue.description == "Use of tx.origin for authorization"
        assert issue.recommendation == "Use msg.sender instead of tx.origin for authorization"
        assert issue.location is None

    def test_none_source_treated_as_empty(self):
        outcome = self.engine.evaluate(None, _without_functions())
        assert len(outcome.passed_checks) == 8

    def test_get_rule_unknown(self):
        assert self.engine.get_rule("nope") is None
