#!/usr/bin/env python3
"""
Analysis Service

Orchestrates the full contract pipeline: shallow parse, AI legal summary,
security audit, gas heuristic, provenance on the ledger and the in-memory
analysis record.  Blocking collaborators (OpenAI, web3, mirror node) run in
worker threads so the service can be driven from an event loop.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.analysis_store import AnalysisStatus, AnalysisStore, StoredAnalysis
from core.config_manager import LexAuditConfig
from core.contract_parser import ContractParser
from core.exceptions import ConfigurationError, ValidationError
from core.gas_analyzer import GasUsageAnalyzer
from core.ledger_client import HederaClient, LedgerClient
from core.legal_summarizer import LegalSummarizer
from core.security_auditor import SecurityAuditor
from core.solidity_compiler import SolidityCompiler

logger = logging.getLogger(__name__)


class AnalysisService:
    """Async facade over the audit core and its collaborators."""

    def __init__(
        self,
        summarizer: LegalSummarizer,
        ledger: Optional[LedgerClient] = None,
        store: Optional[AnalysisStore] = None,
        parser: Optional[ContractParser] = None,
        auditor: Optional[SecurityAuditor] = None,
        gas_analyzer: Optional[GasUsageAnalyzer] = None,
        network: str = "testnet",
        recent_limit: int = 10,
    ):
        self.summarizer = summarizer
        self.ledger = ledger
        self.store = store or AnalysisStore()
        self.parser = parser or ContractParser()
        self.auditor = auditor or SecurityAuditor(parser=self.parser)
        self.gas_analyzer = gas_analyzer or GasUsageAnalyzer()
        self.network = network
        self.recent_limit = recent_limit

    @classmethod
    def from_config(cls, config: LexAuditConfig) -> "AnalysisService":
        """Wire the service from configuration; the ledger is skipped without credentials."""
        summarizer = LegalSummarizer(
            api_key=config.openai_api_key or None,
            model=config.openai_model,
            risk_model=config.openai_risk_model,
            timeout=config.llm_timeout,
            max_retries=config.llm_max_retries,
        )

        ledger = None
        if config.hedera_account_id and config.hedera_private_key:
            ledger = HederaClient(
                account_id=config.hedera_account_id,
                private_key=config.hedera_private_key,
                network=config.hedera_network,
                json_rpc_url=config.hedera_json_rpc_url or None,
                mirror_node_url=config.hedera_mirror_node_url or None,
                hashscan_base_url=config.hashscan_base_url or None,
                compiler=SolidityCompiler(config.solc_version, config.optimize_runs),
                gas_limit=config.deploy_gas_limit,
                timeout=config.ledger_timeout,
                max_retries=config.ledger_max_retries,
            )
        else:
            logger.warning("Hedera credentials not configured - provenance and deployment disabled")

        return cls(
            summarizer=summarizer,
            ledger=ledger,
            network=config.hedera_network,
            recent_limit=config.recent_analyses_limit,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def analyze_contract(self, source: str, filename: str = "contract.sol") -> Dict[str, Any]:
        if not source or not source.strip():
            raise ValidationError("Contract source is empty", field="source")

        logger.info(f"Analyzing contract: {filename}")
        parsed = self.parser.parse_contract(source)

        summary, security_report = await asyncio.gather(
            asyncio.to_thread(self.summarizer.summarize_contract, source),
            asyncio.to_thread(self.auditor.audit_contract, source, parsed),
        )
        gas_report = self.gas_analyzer.analyze_gas_usage(source)

        analysis_id = self._new_analysis_id()
        timestamp = _now()
        report = security_report.to_dict()

        file_id = None
        if self.ledger is not None:
            document = {
                "id": analysis_id,
                "contractName": parsed.contract_name,
                "summary": summary,
                "securityReport": report,
                "contractCode": source,
                "timestamp": timestamp,
                "originalFilename": filename,
            }
            file_id = await asyncio.to_thread(
                self.ledger.store_document, document, f"LexAudit Analysis: {parsed.contract_name}"
            )

        self.store.store(StoredAnalysis(
            id=analysis_id,
            contract_name=parsed.contract_name,
            original_filename=filename,
            risk_score=security_report.risk_score,
            timestamp=timestamp,
            status=AnalysisStatus.ANALYZED,
            file_id=file_id,
            summary=summary,
            security_report=report,
        ))

        logger.info(f"Analysis complete: {analysis_id} (risk {security_report.risk_score})")
        return {
            "success": True,
            "analysisId": analysis_id,
            "fileId": file_id,
            "contractName": parsed.contract_name,
            "summary": summary,
            "securityReport": report,
            "gasReport": gas_report.to_dict(),
            "riskScore": security_report.risk_score,
        }

    async def deploy_contract(
        self,
        analysis_id: str,
        source: str,
        constructor_params: Optional[Sequence[Any]] = None,
    ) -> Dict[str, Any]:
        if not analysis_id:
            raise ValidationError("Analysis ID is required", field="analysis_id")
        if not source:
            raise ValidationError("Contract code is required for deployment", field="source")
        ledger = self._require_ledger()

        logger.info(f"Deploying contract for analysis: {analysis_id}")
        result = await asyncio.to_thread(ledger.deploy_contract, source, list(constructor_params or []))
        links = ledger.explorer_links(result.transaction_id, result.contract_id)

        deployment = {
            "analysisId": analysis_id,
            "contractId": result.contract_id,
            "transactionId": result.transaction_id,
            "gasUsed": result.gas_used,
            "deploymentTimestamp": _now(),
            "network": self.network,
            "hashScanLinks": links,
        }
        deployment_file_id = await asyncio.to_thread(
            ledger.store_document, deployment, f"LexAudit Deployment: {analysis_id}"
        )

        # Analyses from an earlier process are not in memory; nothing to update
        if self.store.exists(analysis_id):
            self.store.update_status(
                analysis_id,
                AnalysisStatus.DEPLOYED,
                contract_id=result.contract_id,
                transaction_id=result.transaction_id,
            )
        else:
            logger.info(f"Analysis {analysis_id} not in this session's store; status not updated")

        return {
            "success": True,
            "contractId": result.contract_id,
            "transactionId": result.transaction_id,
            "gasUsed": result.gas_used,
            "deploymentFileId": deployment_file_id,
            "hashScanLinks": links,
        }

    async def verify_contract(self, contract_id: str) -> Dict[str, Any]:
        if not contract_id:
            raise ValidationError("Contract ID is required", field="contract_id")
        ledger = self._require_ledger()

        logger.info(f"Verifying contract: {contract_id}")
        verification = await asyncio.to_thread(ledger.verify_contract, contract_id)

        if verification.get("verified"):
            analysis = self.store.find_by_contract(contract_id)
            if analysis is not None:
                self.store.update_status(analysis.id, AnalysisStatus.VERIFIED)

        return {
            "success": True,
            "contractId": contract_id,
            "verified": bool(verification.get("verified")),
            "details": verification,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def recent_analyses(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in self.store.recent(limit or self.recent_limit)]

    async def stats(self) -> Dict[str, int]:
        return {
            "totalAnalyses": self.store.count(),
            "contractsDeployed": self.store.deployed_count(),
            "averageRiskScore": self.store.average_risk_score(),
            "highRiskDetected": self.store.high_risk_count(),
        }

    async def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        return self.store.get(analysis_id).to_dict()

    async def health(self) -> Dict[str, Any]:
        network_status = None
        if self.ledger is not None:
            network_status = await asyncio.to_thread(self.ledger.get_network_status)

        return {
            "status": "OK",
            "timestamp": _now(),
            "services": {
                "hedera": bool(network_status and network_status.get("status") == "connected"),
                "openai": bool(getattr(self.summarizer, "has_api_key", False)),
                "network": network_status.get("network") if network_status else self.network,
                "balance": network_status.get("balance") if network_status else None,
            },
            "networkStatus": network_status,
            "stats": {
                "totalAnalyses": self.store.count(),
                "contractsDeployed": self.store.deployed_count(),
            },
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_ledger(self) -> LedgerClient:
        if self.ledger is None:
            raise ConfigurationError(
                "Hedera ledger not configured. Set HEDERA_ACCOUNT_ID and HEDERA_PRIVATE_KEY"
            )
        return self.ledger

    def _new_analysis_id(self) -> str:
        millis = int(time.time() * 1000)
        analysis_id = f"analysis-{millis}"
        while self.store.exists(analysis_id):
            millis += 1
            analysis_id = f"analysis-{millis}"
        return analysis_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
