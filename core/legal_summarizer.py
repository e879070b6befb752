"""
AI legal summary of Solidity contracts using the OpenAI chat API.

The summary is an opaque JSON object passed through to callers; every failure
mode degrades to a fixed fallback object rather than an exception.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from core.json_utils import parse_json_object
from core.models import SecurityIssue

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = "You are a legal expert specializing in smart contract analysis and blockchain law."
RISK_SYSTEM_PROMPT = "You are a legal risk analyst specializing in smart contract compliance and regulatory affairs."


def pending_summary(response_text: str) -> Dict[str, Any]:
    """Summary used when the model answered in prose instead of JSON."""
    return {
        "summary": response_text,
        "keyFunctions": [],
        "accessControls": "Analysis pending",
        "legalImplications": [],
        "complianceNotes": "Review required",
        "legalRiskLevel": "MEDIUM",
    }


def unavailable_summary() -> Dict[str, Any]:
    return {
        "summary": "Contract analysis unavailable - please review manually",
        "keyFunctions": ["Manual review required"],
        "accessControls": "Unable to determine",
        "legalImplications": ["Manual legal review recommended"],
        "complianceNotes": "Professional legal advice suggested",
        "legalRiskLevel": "HIGH",
    }


def pending_risk_report() -> Dict[str, Any]:
    return {
        "overallRisk": "MEDIUM",
        "recommendations": ["Professional legal review recommended"],
        "liabilityScore": 5,
        "complianceScore": 5,
    }


def unavailable_risk_report() -> Dict[str, Any]:
    return {
        "overallRisk": "HIGH",
        "recommendations": ["Immediate legal review required due to analysis failure"],
        "liabilityScore": 8,
        "complianceScore": 8,
    }


class LegalSummarizer:
    """LLM-backed legal summaries and legal risk reports."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-3.5-turbo",
        risk_model: str = "gpt-4",
        timeout: float = 60.0,
        max_retries: int = 2,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model
        self.risk_model = risk_model
        self.has_api_key = bool(self.api_key)
        self.client = None

        if self.has_api_key:
            self.client = OpenAI(api_key=self.api_key, timeout=timeout, max_retries=max_retries)
        else:
            logger.warning("No OpenAI API key provided - AI legal summaries disabled")

    def summarize_contract(self, contract_code: str) -> Dict[str, Any]:
        """Plain-language legal summary of a contract."""
        if not self.has_api_key:
            return unavailable_summary()

        try:
            response = self._complete(
                model=self.model,
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                prompt=self._create_summary_prompt(contract_code),
                max_tokens=2000,
            )
            data = parse_json_object(response)
            if data is None:
                return pending_summary(response)
            return data

        except Exception as e:
            logger.error(f"AI analysis error: {e}")
            return unavailable_summary()

    def generate_risk_report(self, security_issues: Sequence[SecurityIssue], contract_complexity: str) -> Dict[str, Any]:
        """Legal risk assessment from security findings and complexity."""
        if not self.has_api_key:
            return unavailable_risk_report()

        try:
            response = self._complete(
                model=self.risk_model,
                system_prompt=RISK_SYSTEM_PROMPT,
                prompt=self._create_risk_prompt(security_issues, contract_complexity),
                max_tokens=1500,
            )
            data = parse_json_object(response)
            if data is None:
                return pending_risk_report()
            return data

        except Exception as e:
            logger.error(f"Risk analysis error: {e}")
            return unavailable_risk_report()

    def _complete(self, model: str, system_prompt: str, prompt: str, max_tokens: int) -> str:
        completion = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=0.1,
            max_tokens=max_tokens,
        )

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise ValueError("No response from AI service")
        return content

    def _create_summary_prompt(self, contract_code: str) -> str:
        return f"""
Analyze this Solidity smart contract and provide a comprehensive legal summary:

{contract_code}

Please provide:
1. A plain English summary of what this contract does
2. Key functions and their purposes
3. Access controls and permissions
4. Potential legal implications
5. Compliance considerations
6. Risk assessment from a legal perspective

Format the response as JSON with the following structure:
{{
  "summary": "Plain English description",
  "keyFunctions": ["function1", "function2"],
  "accessControls": "Description of access controls",
  "legalImplications": ["implication1", "implication2"],
  "complianceNotes": "Compliance considerations",
  "legalRiskLevel": "LOW/MEDIUM/HIGH"
}}
"""

    def _create_risk_prompt(self, security_issues: Sequence[SecurityIssue], contract_complexity: str) -> str:
        issues: List[Dict[str, Any]] = [
            issue.to_dict() if isinstance(issue, SecurityIssue) else issue
            for issue in security_issues
        ]
        return f"""
Generate a legal risk assessment report based on these security findings and contract complexity:

Security Issues: {json.dumps(issues)}
Contract Complexity: {contract_complexity}

Provide a comprehensive legal risk analysis focusing on:
1. Liability concerns
2. Regulatory compliance risks
3. Financial exposure
4. Operational risks
5. Recommendations for risk mitigation

Format as JSON with risk levels and actionable recommendations.
"""
