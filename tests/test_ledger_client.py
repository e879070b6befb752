#!/usr/bin/env python3
"""
Unit tests for the Hedera ledger client.
"""

import hashlib
import json
from unittest.mock import MagicMock

import pytest
import requests

from core.exceptions import ConfigurationError, LedgerError
from core.ledger_client import NETWORKS, HederaClient, LedgerClient
from core.solidity_compiler import CompiledContract

TX_HASH = bytes.fromhex("ab" * 32)
TX_HASH_HEX = "0x" + "ab" * 32
TEST_KEY = "0x" + "11" * 32


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


@pytest.fixture
def web3_mock():
    w3 = MagicMock()
    w3.eth.account.from_key.return_value.address = "0x1111111111111111111111111111111111111111"
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.gas_price = 10
    w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "contractAddress": "0x00000000000000000000000000000000000003e9",
        "transactionHash": TX_HASH,
        "gasUsed": 654321,
    }
    return w3


@pytest.fixture
def client(web3_mock):
    compiler = MagicMock()
    compiler.compile.return_value = CompiledContract(name="Token", abi=[], bytecode="6080")
    return HederaClient(
        account_id="0.0.1234",
        private_key=TEST_KEY,
        compiler=compiler,
        web3=web3_mock,
        session=MagicMock(),
    )


class TestConstruction:

    def test_is_ledger_client(self, client):
        assert isinstance(client, LedgerClient)

    def test_networks(self):
        assert NETWORKS["testnet"].chain_id == 296
        assert NETWORKS["mainnet"].chain_id == 295

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            HederaClient(account_id="", private_key=TEST_KEY)
        with pytest.raises(ConfigurationError):
            HederaClient(account_id="0.0.1", private_key="")

    def test_unknown_network(self):
        with pytest.raises(ConfigurationError) as exc_info:
            HederaClient(account_id="0.0.1", private_key=TEST_KEY, network="devnet")
        assert exc_info.value.details["supported"] == ["mainnet", "testnet"]

    def test_invalid_key(self, web3_mock):
        web3_mock.eth.account.from_key.side_effect = ValueError("bad key")
        with pytest.raises(ConfigurationError, match="Invalid Hedera ECDSA private key"):
            HederaClient(account_id="0.0.1", private_key="nope", web3=web3_mock, session=MagicMock())

    def test_defaults_without_injection(self):
        client = HederaClient(account_id="0.0.1", private_key=TEST_KEY, network="mainnet")

        assert client.json_rpc_url == "https://mainnet.hashio.io/api"
        assert client.mirror_node_url == "https://mainnet.mirrornode.hedera.com"
        assert client.account.address.startswith("0x")

    def test_url_overrides(self, web3_mock):
        client = HederaClient(
            account_id="0.0.1",
            private_key=TEST_KEY,
            mirror_node_url="http://localhost:5551/",
            hashscan_base_url="https://explorer.example/testnet/",
            web3=web3_mock,
            session=MagicMock(),
        )
        assert client.mirror_node_url == "http://localhost:5551"
        assert client.explorer_links("0x01")["transaction"] == "https://explorer.example/testnet/transaction/0x01"


class TestTransactions:

    def test_deploy_contract(self, client, web3_mock):
        result = client.deploy_contract("contract Token {}", [1000])

        client.compiler.compile.assert_called_once_with("contract Token {}")
        web3_mock.eth.contract.assert_called_once_with(abi=[], bytecode="6080")
        web3_mock.eth.contract.return_value.constructor.assert_called_once_with(1000)
        tx_params = web3_mock.eth.contract.return_value.constructor.return_value.build_transaction.call_args.args[0]
        assert tx_params["chainId"] == 296
        assert tx_params["gas"] == 1_000_000
        assert tx_params["nonce"] == 7

        assert result.contract_id == "0x00000000000000000000000000000000000003e9"
        assert result.transaction_id == TX_HASH_HEX
        assert result.gas_used == 654321
        assert result.contract_name == "Token"

    def test_deploy_reverted(self, client, web3_mock):
        web3_mock.eth.wait_for_transaction_receipt.return_value = {
            "status": 0,
            "contractAddress": None,
            "transactionHash": TX_HASH,
            "gasUsed": 1,
        }
        with pytest.raises(LedgerError, match="deployment failed"):
            client.deploy_contract("contract Token {}")

    def test_deploy_transport_error_wrapped(self, client, web3_mock):
        web3_mock.eth.send_raw_transaction.side_effect = ConnectionError("relay down")
        with pytest.raises(LedgerError, match="relay down"):
            client.deploy_contract("contract Token {}")

    def test_store_document_anchors_digest(self, client, web3_mock):
        document = {"b": 2, "a": 1}
        record_id = client.store_document(document, "LexAudit Analysis: Token")

        assert record_id == TX_HASH_HEX
        tx = web3_mock.eth.account.sign_transaction.call_args.args[0]
        expected = hashlib.sha256(json.dumps(document, sort_keys=True, separators=(",", ":")).encode()).hexdigest()
        assert tx["data"] == "0x" + expected
        assert tx["value"] == 0
        assert tx["to"] == tx["from"]

    def test_store_document_reverted(self, client, web3_mock):
        web3_mock.eth.wait_for_transaction_receipt.return_value = {"status": 0, "transactionHash": TX_HASH}
        with pytest.raises(LedgerError):
            client.store_document({"a": 1})


class TestMirrorNode:

    def test_verify_found(self, client):
        client.session.get.return_value = _response(200, {
            "contract_id": "0.0.1001",
            "evm_address": "0x00000000000000000000000000000000000003e9",
            "created_timestamp": "1700000000.000000001",
        })

        result = client.verify_contract("0.0.1001")

        assert result["verified"] is True
        assert result["contractId"] == "0.0.1001"
        url = client.session.get.call_args.args[0]
        assert url == "https://testnet.mirrornode.hedera.com/api/v1/contracts/0.0.1001"

    def test_verify_not_found(self, client):
        client.session.get.return_value = _response(404)
        assert client.verify_contract("0.0.9") == {"verified": False, "contractId": "0.0.9"}

    def test_verify_transport_error(self, client):
        client.session.get.side_effect = requests.ConnectionError("no route")

        result = client.verify_contract("0.0.9")
        assert result["verified"] is False
        assert "no route" in result["error"]

    @pytest.mark.parametrize("tinybars,expected", [
        (15_000_000_000, "150 ℏ"),
        (150_000_000, "1.5 ℏ"),
        (0, "0 ℏ"),
    ])
    def test_account_balance(self, client, tinybars, expected):
        client.session.get.return_value = _response(200, {
            "balances": [{"account": "0.0.1234", "balance": tinybars}],
        })

        assert client.get_account_balance() == expected
        assert client.session.get.call_args.kwargs["params"] == {"account.id": "0.0.1234"}

    def test_account_balance_errors(self, client):
        client.session.get.return_value = _response(200, {"balances": []})
        with pytest.raises(LedgerError, match="Account not found"):
            client.get_account_balance()

        client.session.get.return_value = _response(500)
        with pytest.raises(LedgerError):
            client.get_account_balance()

    def test_network_status(self, client):
        client.session.get.return_value = _response(200, {"balances": [{"balance": 100_000_000}]})

        status = client.get_network_status()
        assert status["network"] == "testnet"
        assert status["accountId"] == "0.0.1234"
        assert status["balance"] == "1 ℏ"
        assert status["status"] == "connected"
        assert status["timestamp"]

    def test_network_status_error(self, client):
        client.session.get.side_effect = requests.Timeout("slow")

        status = client.get_network_status()
        assert status["status"] == "error"
        assert status["balance"] is None
        assert "slow" in status["error"]

    def test_explorer_links(self, client):
        assert client.explorer_links("0xabc", "0.0.5") == {
            "transaction": "https://hashscan.io/testnet/transaction/0xabc",
            "contract": "https://hashscan.io/testnet/contract/0.0.5",
        }
        assert client.explorer_links() == {}
