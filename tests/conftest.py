"""
Shared test fixtures for the LexAudit test suite.

Provides sample Solidity contracts, a temporary .sol file, a mock
ConfigManager and fake collaborators for the analysis service.
"""

from unittest.mock import MagicMock

import pytest

from core.config_manager import LexAuditConfig
from core.ledger_client import DeploymentResult, LedgerClient


# ── Sample Solidity contract source ─────────────────────────────

SAMPLE_SOLIDITY = """\
// SPDX-License-Identifier: MIT
pragma solidity ^0.8.20;

import "./IERC20.sol";

contract SimpleToken {
    mapping(address => uint256) public balances;
    uint256 public totalSupply;
    address private owner;

    event Transfer(address indexed from, address indexed to, uint256 amount);

    modifier onlyOwner() {
        require(msg.sender == owner, "not owner");
        _;
    }

    constructor(uint256 _initialSupply) {
        owner = msg.sender;
        balances[msg.sender] = _initialSupply;
        totalSupply = _initialSupply;
    }

    function transfer(address to, uint256 amount) external returns (bool) {
        require(balances[msg.sender] >= amount, "insufficient balance");
        balances[msg.sender] -= amount;
        balances[to] += amount;
        emit Transfer(msg.sender, to, amount);
        return true;
    }

    function mint(address to, uint256 amount) public onlyOwner {
        balances[to] += amount;
        totalSupply += amount;
    }

    function balanceOf(address account) public view returns (uint256) {
        return balances[account];
    }
}
"""

VULNERABLE_SOLIDITY = """\
pragma solidity ^0.6.0;

contract Bank {
    mapping(address => uint) public balances;
    uint public totalDeposits;
    address owner;

    function deposit() public payable {
        balances[msg.sender] = balances[msg.sender] + msg.value;
        totalDeposits = totalDeposits + msg.value;
    }

    function withdraw(uint amount) public {
        require(tx.origin == owner);
        if (balances[msg.sender] >= amount) {
            msg.sender.call("");
        }
        balances[msg.sender] = 0;
    }

    function lottery() public view returns (uint) {
        return uint(keccak256(abi.encodePacked(block.timestamp))) % 10;
    }
}
"""

MINIMAL_SOLIDITY = "pragma solidity ^0.8.0; contract Foo { function bar() public {} }"

BROKEN_SOLIDITY = "contract Broken { function f() public {"

MODERN_SOLIDITY = """\
pragma solidity ^0.8.4;

contract Vault {
    error Unauthorized();

    uint256 public total;

    function add(uint256 amount) public {
        if (amount == 0) revert Unauthorized();
        unchecked { total += amount; }
    }
}
"""


# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def sample_contract():
    return SAMPLE_SOLIDITY


@pytest.fixture
def vulnerable_contract():
    return VULNERABLE_SOLIDITY


@pytest.fixture
def tmp_single_sol(tmp_path):
    """A single Solidity file in a temporary directory."""
    sol_path = tmp_path / "SimpleToken.sol"
    sol_path.write_text(SAMPLE_SOLIDITY)
    return sol_path


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment overrides so ConfigManager reads only the file."""
    for name in (
        "OPENAI_API_KEY", "HEDERA_NETWORK", "HEDERA_ACCOUNT_ID", "HEDERA_PRIVATE_KEY",
        "HEDERA_JSON_RPC_URL", "HEDERA_MIRROR_NODE_URL", "HASHSCAN_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_config_manager():
    """A MagicMock ConfigManager wrapping a default LexAuditConfig."""
    mgr = MagicMock()
    mgr.config = LexAuditConfig()
    return mgr


class FakeSummarizer:
    """LegalSummarizer stand-in that records its calls."""

    has_api_key = True

    def __init__(self, summary=None):
        self.summary = summary or {"summary": "A token", "legalRiskLevel": "LOW"}
        self.calls = []

    def summarize_contract(self, contract_code):
        self.calls.append(contract_code)
        return self.summary


class FakeLedger(LedgerClient):
    """In-memory LedgerClient for service tests."""

    def __init__(self, verified=True):
        self.documents = []
        self.deployments = []
        self.verified = verified

    def deploy_contract(self, source, constructor_params=None):
        self.deployments.append((source, list(constructor_params or [])))
        return DeploymentResult(
            contract_id="0xabc0000000000000000000000000000000000001",
            transaction_id="0xdeadbeef",
            gas_used=123456,
            contract_name="SimpleToken",
        )

    def store_document(self, document, memo=""):
        self.documents.append((document, memo))
        return f"0xrecord{len(self.documents)}"

    def verify_contract(self, contract_id):
        return {"verified": self.verified, "contractId": contract_id}

    def get_account_balance(self):
        return "100 ℏ"

    def get_network_status(self):
        return {
            "network": "testnet",
            "accountId": "0.0.1234",
            "balance": "100 ℏ",
            "status": "connected",
            "timestamp": "2026-01-01T00:00:00+00:00",
        }

    def explorer_links(self, transaction_id=None, contract_id=None):
        links = {}
        if transaction_id:
            links["transaction"] = f"https://hashscan.io/testnet/transaction/{transaction_id}"
        if contract_id:
            links["contract"] = f"https://hashscan.io/testnet/contract/{contract_id}"
        return links


@pytest.fixture
def fake_summarizer():
    return FakeSummarizer()


@pytest.fixture
def fake_ledger():
    return FakeLedger()
