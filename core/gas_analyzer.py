"""
Gas Usage Analyzer

Counts gas-relevant constructs (loops, low-level external calls, storage
declarations) in raw Solidity source and bands them into a coarse risk level
with recommendations.  Runs independently of the security rule engine.
"""

import re
from typing import Any, Dict, List

from core.models import GasPatterns, GasReport, GasRisk


class GasUsageAnalyzer:
    """Estimates gas-related risk from pattern counts"""

    def __init__(self):
        self.count_patterns = self._initialize_count_patterns()
        self.risk_bands = self._initialize_risk_bands()

    def _initialize_count_patterns(self) -> Dict[str, re.Pattern]:
        """Patterns counted per category"""
        return {
            'loops': re.compile(r'for\s*\(|while\s*\('),
            'external_calls': re.compile(r'\.call\(|\.delegatecall\(|\.staticcall\('),
            'storage_operations': re.compile(r'storage\s+\w+|mapping\s*\('),
        }

    def _initialize_risk_bands(self) -> List[Dict[str, Any]]:
        """Thresholds checked in order; first band exceeded wins"""
        return [
            {'risk': GasRisk.HIGH, 'loops': 3, 'external_calls': 5},
            {'risk': GasRisk.MEDIUM, 'loops': 1, 'external_calls': 2},
        ]

    def analyze_gas_usage(self, contract_content: str) -> GasReport:
        """Build a GasReport for the given source text"""
        patterns = self._count_patterns(contract_content or "")
        gas_risk = self._classify_risk(patterns)

        return GasReport(
            gas_risk=gas_risk,
            patterns=patterns,
            recommendations=self._get_recommendations(gas_risk, patterns),
        )

    def _count_patterns(self, contract_content: str) -> GasPatterns:
        counts = {
            name: len(pattern.findall(contract_content))
            for name, pattern in self.count_patterns.items()
        }
        return GasPatterns(**counts)

    def _classify_risk(self, patterns: GasPatterns) -> GasRisk:
        for band in self.risk_bands:
            if patterns.loops > band['loops'] or patterns.external_calls > band['external_calls']:
                return band['risk']
        return GasRisk.LOW

    def _get_recommendations(self, gas_risk: GasRisk, patterns: GasPatterns) -> List[str]:
        recommendations = []

        if patterns.loops > 1:
            recommendations.append('Consider limiting loop iterations to prevent gas limit issues')

        if patterns.external_calls > 2:
            recommendations.append('Review external calls for reentrancy protection')

        if patterns.storage_operations > 5:
            recommendations.append('Optimize storage operations to reduce gas costs')

        if gas_risk == GasRisk.HIGH:
            recommendations.append('Comprehensive gas optimization review recommended')

        return recommendations
