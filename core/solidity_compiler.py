"""
Solidity compilation for deployment using py-solc-x standard JSON.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import solcx

from core.exceptions import CompilationError

logger = logging.getLogger(__name__)

SOURCE_NAME = "contract.sol"


@dataclass
class CompiledContract:
    name: str
    abi: List[Dict[str, Any]] = field(default_factory=list)
    bytecode: str = ""


class SolidityCompiler:
    """Compile a single-file contract into ABI + creation bytecode."""

    def __init__(self, solc_version: str = "0.8.20", optimize_runs: int = 200):
        self.solc_version = solc_version
        self.optimize_runs = optimize_runs

    def ensure_solc(self) -> None:
        """Install the configured solc binary if it is not present yet."""
        installed = {str(v) for v in solcx.get_installed_solc_versions()}
        if self.solc_version not in installed:
            logger.info(f"Installing solc {self.solc_version}")
            solcx.install_solc(self.solc_version)
        solcx.set_solc_version(self.solc_version)

    def compile(self, source: str) -> CompiledContract:
        try:
            self.ensure_solc()
            output = solcx.compile_standard(self._input_json(source), allow_empty=True)
        except CompilationError:
            raise
        except Exception as exc:
            raise CompilationError(f"Contract compilation failed: {exc}") from exc

        errors = [
            err.get("formattedMessage", err.get("message", ""))
            for err in output.get("errors", [])
            if err.get("severity") == "error"
        ]
        if errors:
            raise CompilationError("Contract compilation failed", details={"errors": errors})

        contracts = output.get("contracts", {}).get(SOURCE_NAME, {})
        if not contracts:
            raise CompilationError("No contracts found in compilation output")

        # solc orders contracts by name, so this is the alphabetically first one
        name, data = next(iter(contracts.items()))
        bytecode = data.get("evm", {}).get("bytecode", {}).get("object", "")
        if not bytecode:
            raise CompilationError(f"Contract {name} produced no bytecode (abstract or interface?)")

        logger.debug(f"Compiled {name}: {len(bytecode) // 2} bytes")
        return CompiledContract(name=name, abi=data.get("abi", []), bytecode=bytecode)

    def _input_json(self, source: str) -> Dict[str, Any]:
        return {
            "language": "Solidity",
            "sources": {SOURCE_NAME: {"content": source}},
            "settings": {
                "optimizer": {"enabled": True, "runs": self.optimize_runs},
                "outputSelection": {
                    "*": {"*": ["abi", "evm.bytecode.object"]},
                },
            },
        }
