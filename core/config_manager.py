#!/usr/bin/env python3
"""
Configuration Manager for LexAudit

Loads application settings from a YAML file and lets environment variables
override them.  The audit rules themselves are fixed constants and are not
configurable here.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml
from rich.console import Console

logger = logging.getLogger(__name__)


@dataclass
class LexAuditConfig:
    """Main configuration for LexAudit."""

    # AI legal summary
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_risk_model: str = "gpt-4"
    llm_timeout: float = 60.0
    llm_max_retries: int = 2

    # Ledger (Hedera)
    hedera_network: str = "testnet"
    hedera_account_id: str = ""
    hedera_private_key: str = ""
    hedera_json_rpc_url: str = ""      # empty: network default relay
    hedera_mirror_node_url: str = ""   # empty: network default mirror node
    hashscan_base_url: str = ""        # empty: https://hashscan.io/<network>
    deploy_gas_limit: int = 1_000_000
    ledger_timeout: float = 30.0
    ledger_max_retries: int = 3

    # Compiler
    solc_version: str = "0.8.20"
    optimize_runs: int = 200

    # Service
    recent_analyses_limit: int = 10


# Environment variable -> config attribute
ENV_OVERRIDES: Dict[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "HEDERA_NETWORK": "hedera_network",
    "HEDERA_ACCOUNT_ID": "hedera_account_id",
    "HEDERA_PRIVATE_KEY": "hedera_private_key",
    "HEDERA_JSON_RPC_URL": "hedera_json_rpc_url",
    "HEDERA_MIRROR_NODE_URL": "hedera_mirror_node_url",
    "HASHSCAN_BASE_URL": "hashscan_base_url",
}


class ConfigManager:
    """Manages LexAudit configuration."""

    def __init__(self, config_file: str = "~/.lexaudit/config.yaml", use_env: bool = True):
        self.config_file = Path(config_file).expanduser()
        self.console = Console()
        self.config = LexAuditConfig()
        self.use_env = use_env

        self.load_config()

    def load_config(self) -> None:
        """Load configuration from file, then apply environment overrides."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    data = yaml.safe_load(f)

                if data:
                    self._apply(data)

            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Could not load config file {self.config_file}: {e}")
                self.console.print(f"[yellow]Warning: Could not load config file: {e}[/yellow]")

        if self.use_env:
            self._apply_env()

    def _apply(self, data: Dict[str, Any]) -> None:
        known = {f.name: f for f in fields(LexAuditConfig)}
        for key, value in data.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            setattr(self.config, key, value)

    def _apply_env(self) -> None:
        for env_name, attr in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                setattr(self.config, attr, value.strip())

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                yaml.dump(asdict(self.config), f, default_flow_style=False, indent=2)

            self.console.print(f"[green]✓ Configuration saved to {self.config_file}[/green]")

        except OSError as e:
            self.console.print(f"[red]✗ Failed to save config: {e}[/red]")

    def set_openai_key(self, api_key: str) -> None:
        """Set OpenAI API key for AI legal summaries."""
        self.config.openai_api_key = api_key
        self.save_config()
        self.console.print("[green]✓ OpenAI API key configured[/green]")

    def has_ledger_credentials(self) -> bool:
        return bool(self.config.hedera_account_id and self.config.hedera_private_key)

    def show_config(self) -> None:
        """Display current configuration with secrets masked."""
        from rich.table import Table

        table = Table(title="⚙️ LexAudit Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        for key, value in asdict(self.config).items():
            if key in ("openai_api_key", "hedera_private_key"):
                value = _mask(value)
            table.add_row(key, str(value) if value != "" else "-")

        self.console.print(table)
        self.console.print(f"\n[bold cyan]Config File:[/bold cyan] {self.config_file}")


def _mask(secret: str) -> str:
    if not secret:
        return ""
    return secret[:4] + "…" if len(secret) > 8 else "****"
