"""
In-memory record of contract analyses and their lifecycle status.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.exceptions import AnalysisNotFoundError

logger = logging.getLogger(__name__)

HIGH_RISK_THRESHOLD = 70


class AnalysisStatus(Enum):
    ANALYZED = "analyzed"
    DEPLOYED = "deployed"
    VERIFIED = "verified"


@dataclass
class StoredAnalysis:
    id: str
    contract_name: str
    original_filename: str
    risk_score: int
    timestamp: str
    status: AnalysisStatus = AnalysisStatus.ANALYZED
    file_id: Optional[str] = None
    contract_id: Optional[str] = None
    transaction_id: Optional[str] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    security_report: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "contractName": self.contract_name,
            "originalFilename": self.original_filename,
            "riskScore": self.risk_score,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "fileId": self.file_id,
            "contractId": self.contract_id,
            "transactionId": self.transaction_id,
            "summary": self.summary,
            "securityReport": self.security_report,
        }


class AnalysisStore:
    """Thread-safe map of analysis id to StoredAnalysis, in insertion order."""

    def __init__(self):
        self._analyses: Dict[str, StoredAnalysis] = {}
        self._lock = threading.Lock()

    def store(self, analysis: StoredAnalysis) -> StoredAnalysis:
        with self._lock:
            self._analyses[analysis.id] = analysis
        logger.debug(f"Stored analysis {analysis.id} ({analysis.contract_name})")
        return analysis

    def get(self, analysis_id: str) -> StoredAnalysis:
        with self._lock:
            analysis = self._analyses.get(analysis_id)
        if analysis is None:
            raise AnalysisNotFoundError(analysis_id)
        return analysis

    def exists(self, analysis_id: str) -> bool:
        with self._lock:
            return analysis_id in self._analyses

    def find_by_contract(self, contract_id: str) -> Optional[StoredAnalysis]:
        with self._lock:
            for analysis in self._analyses.values():
                if analysis.contract_id == contract_id:
                    return analysis
        return None

    def update_status(self, analysis_id: str, status: AnalysisStatus, **extra: Any) -> StoredAnalysis:
        """Set the lifecycle status and any of file_id/contract_id/transaction_id."""
        analysis = self.get(analysis_id)
        with self._lock:
            analysis.status = status
            for key, value in extra.items():
                if not hasattr(analysis, key):
                    raise AttributeError(f"StoredAnalysis has no field {key!r}")
                setattr(analysis, key, value)
        return analysis

    def recent(self, limit: int = 10) -> List[StoredAnalysis]:
        """Newest first."""
        with self._lock:
            analyses = list(reversed(self._analyses.values()))
        return analyses[:max(limit, 0)]

    def all(self) -> List[StoredAnalysis]:
        with self._lock:
            return list(self._analyses.values())

    def count(self) -> int:
        with self._lock:
            return len(self._analyses)

    def deployed_count(self) -> int:
        return sum(
            1 for a in self.all()
            if a.status in (AnalysisStatus.DEPLOYED, AnalysisStatus.VERIFIED)
        )

    def average_risk_score(self) -> int:
        analyses = self.all()
        if not analyses:
            return 0
        # Half-up, not banker's rounding
        return int(sum(a.risk_score for a in analyses) / len(analyses) + 0.5)

    def high_risk_count(self) -> int:
        return sum(1 for a in self.all() if a.risk_score >= HIGH_RISK_THRESHOLD)
