#!/usr/bin/env python3
"""
LexAudit: heuristic security and legal audit of Solidity contracts,
with optional deployment and provenance on Hedera.

Main entry point for the CLI interface.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from cli.main import LexAuditCLI
from core.exceptions import LexAuditError


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lexaudit",
        description="LexAudit: Solidity security audit, legal summary and Hedera deployment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lexaudit audit contracts/Token.sol
  lexaudit audit contracts/Token.sol --json --with-summary
  lexaudit gas contracts/Token.sol
  lexaudit analyze contracts/Token.sol
  lexaudit deploy contracts/Token.sol --param 1000
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose (debug) logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    audit_parser = subparsers.add_parser('audit', help='Run the heuristic security audit')
    audit_parser.add_argument('contract', help='Path to a .sol file')
    audit_parser.add_argument('--json', action='store_true', help='Print the report as JSON')
    audit_parser.add_argument('--with-summary', action='store_true', help='Include the AI legal summary')

    gas_parser = subparsers.add_parser('gas', help='Run the gas-usage heuristic')
    gas_parser.add_argument('contract', help='Path to a .sol file')
    gas_parser.add_argument('--json', action='store_true', help='Print the report as JSON')

    analyze_parser = subparsers.add_parser('analyze', help='Full analysis with provenance on Hedera')
    analyze_parser.add_argument('contract', help='Path to a .sol file')

    deploy_parser = subparsers.add_parser('deploy', help='Compile and deploy a contract to Hedera')
    deploy_parser.add_argument('contract', help='Path to a .sol file')
    deploy_parser.add_argument('--analysis-id', help='Analysis to attach the deployment to (analyzes first if omitted)')
    deploy_parser.add_argument('--param', action='append', default=[], dest='params',
                               help='Constructor argument (repeatable, in order)')

    verify_parser = subparsers.add_parser('verify', help='Check a deployed contract on the mirror node')
    verify_parser.add_argument('contract_id', help='Contract id or EVM address')

    subparsers.add_parser('status', help='Show Hedera and OpenAI connectivity')

    config_parser = subparsers.add_parser('config', help='Show or update configuration')
    config_parser.add_argument('--show', action='store_true', help='Show current configuration')
    config_parser.add_argument('--set-openai-key', help='Store the OpenAI API key')

    subparsers.add_parser('version', help='Show version information')

    return parser


def main(argv=None) -> int:
    """Main entry point for LexAudit CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    console = Console()
    try:
        cli = LexAuditCLI(console=console)

        if args.command == 'audit':
            return cli.run_audit(args.contract, as_json=args.json, with_summary=args.with_summary)
        elif args.command == 'gas':
            return cli.run_gas(args.contract, as_json=args.json)
        elif args.command == 'analyze':
            return asyncio.run(cli.run_analyze(args.contract))
        elif args.command == 'deploy':
            return asyncio.run(cli.run_deploy(args.contract, args.analysis_id, args.params))
        elif args.command == 'verify':
            return asyncio.run(cli.run_verify(args.contract_id))
        elif args.command == 'status':
            return asyncio.run(cli.show_status())
        elif args.command == 'config':
            if args.set_openai_key:
                cli.config_manager.set_openai_key(args.set_openai_key)
                return 0
            cli.config_manager.show_config()
            return 0
        elif args.command == 'version':
            cli.show_version()
            return 0

    except KeyboardInterrupt:
        console.print("\nOperation cancelled by user.")
        return 1
    except (LexAuditError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
