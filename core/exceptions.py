"""
Exception hierarchy for LexAudit.

The audit core never raises; these are raised by the collaborators around it
(compiler, ledger, configuration) and by the analysis service.
"""

from typing import Any, Dict, Optional


class LexAuditError(Exception):
    """Base exception class for LexAudit-specific errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(LexAuditError):
    """Missing or invalid configuration (API keys, ledger credentials)."""
    pass


class ValidationError(LexAuditError):
    """Exception for request validation errors."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message, details={"field": field, "value": str(value)})
        self.field = field
        self.value = value


class CompilationError(LexAuditError):
    """Solidity compilation failed or produced no bytecode."""
    pass


class LedgerError(LexAuditError):
    """A ledger transaction or query failed."""
    pass


class AnalysisNotFoundError(LexAuditError):
    """No stored analysis with the requested id."""

    def __init__(self, analysis_id: str):
        super().__init__(f"Analysis not found: {analysis_id}", details={"analysis_id": analysis_id})
        self.analysis_id = analysis_id
