"""
Shallow Solidity contract parser.

Builds an AST with the ANTLR-based ``solidity_parser`` grammar and walks it to
collect structural facts (contract name, functions, events, modifiers, state
variables, imports).  When the grammar rejects the source the caller gets a
conservative fallback record instead of an exception: name recovered by
regex, empty structure, HIGH complexity.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from antlr4 import CommonTokenStream, InputStream
from antlr4.error.ErrorListener import ErrorListener
from solidity_parser.parser import AstVisitor
from solidity_parser.solidity_antlr4.SolidityLexer import SolidityLexer
from solidity_parser.solidity_antlr4.SolidityParser import SolidityParser

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class Complexity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


VISIBILITIES = ("public", "private", "internal", "external", "default")

UNKNOWN_CONTRACT = "Unknown"
FALLBACK_CONTRACT = "UnknownContract"


@dataclass
class Parameter:
    name: str
    type_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type_name}


@dataclass
class FunctionInfo:
    name: str
    visibility: str = "default"
    mutability: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    return_parameters: List[Parameter] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "visibility": self.visibility,
            "mutability": self.mutability,
            "parameters": [p.to_dict() for p in self.parameters],
            "returnParameters": [p.to_dict() for p in self.return_parameters],
        }


@dataclass
class EventInfo:
    """Event or modifier signature."""
    name: str
    parameters: List[Parameter] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "parameters": [p.to_dict() for p in self.parameters]}


@dataclass
class VariableDeclaration:
    """One state variable declaration statement."""
    variables: List[str] = field(default_factory=list)
    visibility: str = "default"

    def to_dict(self) -> Dict[str, Any]:
        return {"variables": list(self.variables), "visibility": self.visibility}


@dataclass
class ParsedContract:
    contract_name: str = UNKNOWN_CONTRACT
    functions: List[FunctionInfo] = field(default_factory=list)
    events: List[EventInfo] = field(default_factory=list)
    modifiers: List[EventInfo] = field(default_factory=list)
    variables: List[VariableDeclaration] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    complexity: Complexity = Complexity.LOW

    def has_public_functions(self) -> bool:
        return any(f.visibility == "public" for f in self.functions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractName": self.contract_name,
            "functions": [f.to_dict() for f in self.functions],
            "events": [e.to_dict() for e in self.events],
            "modifiers": [m.to_dict() for m in self.modifiers],
            "variables": [v.to_dict() for v in self.variables],
            "imports": list(self.imports),
            "complexity": self.complexity.value,
        }


@dataclass
class ParseResult:
    """Outcome of a structural parse: either a contract or an error message."""
    contract: Optional[ParsedContract] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.contract is not None


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

class SoliditySyntaxError(Exception):
    """Raised on the first lexer or parser error reported by the grammar."""

    def __init__(self, line: int, column: int, msg: str):
        super().__init__(f"line {line}:{column} {msg}")
        self.line = line
        self.column = column


class RaisingErrorListener(ErrorListener):
    """Turns ANTLR's recover-and-print behaviour into an exception."""

    def syntaxError(self, recognizer, offendingSymbol, line, column, msg, e):
        raise SoliditySyntaxError(line, column, msg)


def parse_solidity(source: str) -> Dict[str, Any]:
    """Parse source with the ANTLR grammar, raising on any syntax error."""
    listener = RaisingErrorListener()

    lexer = SolidityLexer(InputStream(source))
    lexer.removeErrorListeners()
    lexer.addErrorListener(listener)

    grammar = SolidityParser(CommonTokenStream(lexer))
    grammar.removeErrorListeners()
    grammar.addErrorListener(listener)

    return AstVisitor().visit(grammar.sourceUnit())


# ---------------------------------------------------------------------------
# Complexity
# ---------------------------------------------------------------------------

def estimate_complexity(parsed: ParsedContract) -> Complexity:
    """Advisory complexity label from structural counts."""
    score = len(parsed.functions) * 2
    score += len(parsed.variables)
    score += len(parsed.events) + len(parsed.modifiers)
    score += len(parsed.imports) * 3

    if score < 10:
        return Complexity.LOW
    if score < 25:
        return Complexity.MEDIUM
    return Complexity.HIGH


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class ContractParser:
    """Extract structural facts from Solidity source text."""

    CONTRACT_NAME_PATTERN = re.compile(r'contract\s+(\w+)')

    def __init__(self):
        self._visitors: Dict[str, Callable[[Dict[str, Any], ParsedContract, Dict[str, bool]], None]] = {
            "ContractDefinition": self._visit_contract,
            "FunctionDefinition": self._visit_function,
            "EventDefinition": self._visit_event,
            "ModifierDefinition": self._visit_modifier,
            "StateVariableDeclaration": self._visit_state_variable,
            "ImportDirective": self._visit_import,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_contract(self, source: str) -> ParsedContract:
        """Parse source into a ParsedContract; never raises."""
        result = self.try_parse(source)
        if result.ok:
            return result.contract
        logger.warning(f"Contract parsing failed, using fallback: {result.error}")
        return self.fallback(source)

    def try_parse(self, source: str) -> ParseResult:
        """Run the grammar and walk the tree, reporting failure as a value."""
        try:
            tree = parse_solidity(source)
        except Exception as e:
            return ParseResult(error=f"{type(e).__name__}: {e}")

        parsed = ParsedContract()
        state = {"named": False}
        try:
            self._walk(tree, parsed, state)
        except (AttributeError, KeyError, TypeError) as e:
            return ParseResult(error=f"Unexpected AST shape: {e}")

        parsed.complexity = estimate_complexity(parsed)
        return ParseResult(contract=parsed)

    def fallback(self, source: str) -> ParsedContract:
        """Minimal record used when the grammar rejects the source."""
        match = self.CONTRACT_NAME_PATTERN.search(source or "")
        return ParsedContract(
            contract_name=match.group(1) if match else FALLBACK_CONTRACT,
            complexity=Complexity.HIGH,
        )

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def _walk(self, node: Any, parsed: ParsedContract, state: Dict[str, bool]) -> None:
        """Depth-first, pre-order walk in source order."""
        if isinstance(node, list):
            for child in node:
                self._walk(child, parsed, state)
            return
        if not isinstance(node, dict):
            return

        visitor = self._visitors.get(node.get("type"))
        if visitor is not None:
            visitor(node, parsed, state)

        for key, value in node.items():
            if key == "type":
                continue
            if isinstance(value, (dict, list)):
                self._walk(value, parsed, state)

    def _visit_contract(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        # Only the first contract in a file names the result
        if not state["named"]:
            parsed.contract_name = node.get("name") or UNKNOWN_CONTRACT
            state["named"] = True

    def _visit_function(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        visibility = node.get("visibility") or "default"
        if visibility not in VISIBILITIES:
            visibility = "default"
        parsed.functions.append(FunctionInfo(
            name=node.get("name") or "",
            visibility=visibility,
            mutability=node.get("stateMutability"),
            parameters=self._parameters(node.get("parameters")),
            return_parameters=self._parameters(node.get("returnParameters")),
        ))

    def _visit_event(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        parsed.events.append(EventInfo(
            name=node.get("name") or "",
            parameters=self._parameters(node.get("parameters")),
        ))

    def _visit_modifier(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        parsed.modifiers.append(EventInfo(
            name=node.get("name") or "",
            parameters=self._parameters(node.get("parameters")),
        ))

    def _visit_state_variable(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        declarations = node.get("variables") or []
        names = [d.get("name") for d in declarations if isinstance(d, dict) and d.get("name")]
        visibility = node.get("visibility")
        if not visibility and declarations and isinstance(declarations[0], dict):
            visibility = declarations[0].get("visibility")
        parsed.variables.append(VariableDeclaration(
            variables=names,
            visibility=visibility or "default",
        ))

    def _visit_import(self, node: Dict[str, Any], parsed: ParsedContract, state: Dict[str, bool]) -> None:
        path = node.get("path") or ""
        parsed.imports.append(path.strip("\"'"))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parameters(self, value: Any) -> List[Parameter]:
        """Normalise a ParameterList node or a bare list of declarations."""
        if isinstance(value, dict):
            value = value.get("parameters")
        if not isinstance(value, list):
            return []

        params: List[Parameter] = []
        for p in value:
            if not isinstance(p, dict):
                continue
            params.append(Parameter(
                name=p.get("name") or "",
                type_name=self._type_label(p.get("typeName")),
            ))
        return params

    def _type_label(self, type_node: Any) -> str:
        """Render a typeName node as Solidity-like text."""
        if not isinstance(type_node, dict):
            return str(type_node) if type_node else ""

        kind = type_node.get("type", "")
        if kind == "ElementaryTypeName":
            return type_node.get("name", "")
        if kind == "UserDefinedTypeName":
            return type_node.get("namePath", "")
        if kind == "Mapping":
            key = self._type_label(type_node.get("keyType"))
            val = self._type_label(type_node.get("valueType"))
            return f"mapping({key} => {val})"
        if kind == "ArrayTypeName":
            return f"{self._type_label(type_node.get('baseTypeName'))}[]"
        return type_node.get("name", "") or kind
