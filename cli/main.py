"""
Main CLI implementation for LexAudit.
"""

import json
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core.analysis_service import AnalysisService
from core.config_manager import ConfigManager
from core.gas_analyzer import GasUsageAnalyzer
from core.legal_summarizer import LegalSummarizer
from core.models import GasReport, SecurityReport
from core.security_auditor import SecurityAuditor
from utils.file_handler import FileHandler

SEVERITY_STYLES = {
    "CRITICAL": "bold red",
    "HIGH": "red",
    "MEDIUM": "yellow",
    "LOW": "cyan",
}


def risk_style(score: int) -> str:
    if score > 50:
        return "bold red"
    if score > 20:
        return "yellow"
    return "green"


class LexAuditCLI:
    """Main CLI class for LexAudit."""

    def __init__(self, config_manager: Optional[ConfigManager] = None, console: Optional[Console] = None):
        self.version = "1.0.0"
        self.console = console or Console()
        self.file_handler = FileHandler()
        self.config_manager = config_manager or ConfigManager()
        self.auditor = SecurityAuditor()
        self.gas_analyzer = GasUsageAnalyzer()
        self._service: Optional[AnalysisService] = None

    @property
    def service(self) -> AnalysisService:
        if self._service is None:
            self._service = AnalysisService.from_config(self.config_manager.config)
        return self._service

    def show_version(self):
        self.console.print(f"LexAudit v{self.version}")

    # ------------------------------------------------------------------
    # Offline commands
    # ------------------------------------------------------------------

    def run_audit(self, contract_path: str, as_json: bool = False, with_summary: bool = False) -> int:
        """Security audit of one contract file."""
        source = self.file_handler.read_contract(contract_path)
        parsed = self.auditor.parser.parse_contract(source)
        report = self.auditor.audit_contract(source, parsed)

        summary = None
        if with_summary:
            config = self.config_manager.config
            summarizer = LegalSummarizer(
                api_key=config.openai_api_key or None,
                model=config.openai_model,
                timeout=config.llm_timeout,
                max_retries=config.llm_max_retries,
            )
            summary = summarizer.summarize_contract(source)

        if as_json:
            payload: Dict[str, Any] = {
                "contractName": parsed.contract_name,
                "complexity": parsed.complexity.value,
                "securityReport": report.to_dict(),
            }
            if summary is not None:
                payload["summary"] = summary
            print(json.dumps(payload, indent=2))
        else:
            self.console.print(Panel.fit(
                f"[bold]{parsed.contract_name}[/bold]  ·  complexity {parsed.complexity.value}",
                title="🛡️ LexAudit Security Report",
            ))
            self.render_security_report(report)
            if summary is not None:
                self.render_summary(summary)

        return 0

    def run_gas(self, contract_path: str, as_json: bool = False) -> int:
        source = self.file_handler.read_contract(contract_path)
        report = self.gas_analyzer.analyze_gas_usage(source)

        if as_json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            self.render_gas_report(report)
        return 0

    # ------------------------------------------------------------------
    # Service-backed commands
    # ------------------------------------------------------------------

    async def run_analyze(self, contract_path: str) -> int:
        source = self.file_handler.read_contract(contract_path)
        result = await self.service.analyze_contract(source, filename=contract_path)

        self.console.print(Panel.fit(
            f"[bold]{result['contractName']}[/bold]\n"
            f"Analysis ID: {result['analysisId']}\n"
            f"Provenance record: {result['fileId'] or '-'}",
            title="📄 Analysis Complete",
        ))
        self.render_summary(result["summary"])
        self.render_security_report(SecurityReport.from_dict(result["securityReport"]))
        self.console.print(f"[bold]Gas risk:[/bold] {result['gasReport']['gasRisk']}")
        return 0

    async def run_deploy(
        self,
        contract_path: str,
        analysis_id: Optional[str] = None,
        constructor_params: Optional[List[str]] = None,
    ) -> int:
        source = self.file_handler.read_contract(contract_path)

        if not analysis_id:
            analysis = await self.service.analyze_contract(source, filename=contract_path)
            analysis_id = analysis["analysisId"]
            self.console.print(f"[cyan]Analyzed as {analysis_id} (risk {analysis['riskScore']}/100)[/cyan]")

        result = await self.service.deploy_contract(analysis_id, source, constructor_params or [])

        table = Table(title="🚀 Deployment")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Contract ID", str(result["contractId"]))
        table.add_row("Transaction ID", str(result["transactionId"]))
        table.add_row("Gas Used", str(result["gasUsed"]))
        table.add_row("Deployment Record", str(result["deploymentFileId"]))
        for name, link in result["hashScanLinks"].items():
            table.add_row(f"HashScan ({name})", link)
        self.console.print(table)
        return 0

    async def run_verify(self, contract_id: str) -> int:
        result = await self.service.verify_contract(contract_id)
        if result["verified"]:
            self.console.print(f"[green]✓ Contract {contract_id} found on the network[/green]")
            return 0

        error = result["details"].get("error")
        suffix = f": {error}" if error else ""
        self.console.print(f"[red]✗ Contract {contract_id} could not be verified{suffix}[/red]")
        return 1

    async def show_status(self) -> int:
        health = await self.service.health()
        services = health["services"]

        table = Table(title="🌐 LexAudit Status")
        table.add_column("Service", style="cyan")
        table.add_column("Status")
        table.add_row("Hedera", "[green]connected[/green]" if services["hedera"] else "[red]unavailable[/red]")
        table.add_row("Network", str(services["network"]))
        table.add_row("Balance", str(services["balance"] or "-"))
        table.add_row("OpenAI", "[green]configured[/green]" if services["openai"] else "[yellow]not configured[/yellow]")
        self.console.print(table)

        network_status = health.get("networkStatus") or {}
        if network_status.get("error"):
            self.console.print(f"[red]{network_status['error']}[/red]")
        return 0 if services["hedera"] else 1

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_security_report(self, report: SecurityReport) -> None:
        self.console.print(
            f"[bold]Risk score:[/bold] [{risk_style(report.risk_score)}]{report.risk_score}/100[/]"
        )

        if report.issues:
            table = Table(title="Issues")
            table.add_column("Severity")
            table.add_column("Type", style="bold")
            table.add_column("Description")
            table.add_column("Recommendation", style="dim")
            for issue in report.issues:
                severity = issue.severity.value
                table.add_row(
                    f"[{SEVERITY_STYLES[severity]}]{severity}[/]",
                    issue.type,
                    issue.description,
                    issue.recommendation,
                )
            self.console.print(table)

        for check in report.passed_checks:
            self.console.print(f"  [green]✓[/green] {check}")

        self.console.print(f"\n{report.summary}")

    def render_gas_report(self, report: GasReport) -> None:
        style = {"HIGH": "red", "MEDIUM": "yellow", "LOW": "green"}[report.gas_risk.value]
        table = Table(title="⛽ Gas Usage")
        table.add_column("Pattern", style="cyan")
        table.add_column("Count", justify="right")
        table.add_row("Loops", str(report.patterns.loops))
        table.add_row("External calls", str(report.patterns.external_calls))
        table.add_row("Storage operations", str(report.patterns.storage_operations))
        self.console.print(table)
        self.console.print(f"[bold]Gas risk:[/bold] [{style}]{report.gas_risk.value}[/]")
        for recommendation in report.recommendations:
            self.console.print(f"  • {recommendation}")

    def render_summary(self, summary: Dict[str, Any]) -> None:
        lines = [str(summary.get("summary", ""))]
        if summary.get("keyFunctions"):
            lines.append("\n[bold]Key functions:[/bold] " + ", ".join(map(str, summary["keyFunctions"])))
        if summary.get("accessControls"):
            lines.append(f"[bold]Access controls:[/bold] {summary['accessControls']}")
        for implication in summary.get("legalImplications") or []:
            lines.append(f"  • {implication}")
        if summary.get("legalRiskLevel"):
            lines.append(f"[bold]Legal risk:[/bold] {summary['legalRiskLevel']}")
        self.console.print(Panel("\n".join(lines), title="⚖️ Legal Summary"))
