#!/usr/bin/env python3
"""
Ledger Abstraction Layer

Provides the interface the analysis service uses to deploy contracts, anchor
provenance records and query account state.  HederaClient implements it over
the Hedera EVM JSON-RPC relay (web3) and the Hedera mirror node REST API
(requests).
"""

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3

from core.exceptions import ConfigurationError, LedgerError
from core.solidity_compiler import SolidityCompiler

logger = logging.getLogger(__name__)

TINYBARS_PER_HBAR = Decimal(100_000_000)
ANCHOR_GAS_LIMIT = 50_000


@dataclass
class NetworkInfo:
    """Endpoints for one Hedera network."""
    name: str
    chain_id: int
    json_rpc_url: str
    mirror_node_url: str
    explorer_url: str


NETWORKS: Dict[str, NetworkInfo] = {
    'testnet': NetworkInfo(
        name='testnet',
        chain_id=296,
        json_rpc_url='https://testnet.hashio.io/api',
        mirror_node_url='https://testnet.mirrornode.hedera.com',
        explorer_url='https://hashscan.io/testnet',
    ),
    'mainnet': NetworkInfo(
        name='mainnet',
        chain_id=295,
        json_rpc_url='https://mainnet.hashio.io/api',
        mirror_node_url='https://mainnet.mirrornode.hedera.com',
        explorer_url='https://hashscan.io/mainnet',
    ),
}


@dataclass
class DeploymentResult:
    """Outcome of a successful contract deployment."""
    contract_id: str
    transaction_id: str
    gas_used: int
    contract_name: str = ""


class LedgerClient(ABC):
    """Abstract base class for ledger clients."""

    @abstractmethod
    def deploy_contract(self, source: str, constructor_params: Optional[Sequence[Any]] = None) -> DeploymentResult:
        """Compile and deploy a contract."""
        pass

    @abstractmethod
    def store_document(self, document: Dict[str, Any], memo: str = "") -> str:
        """Anchor a provenance document; returns its record id."""
        pass

    @abstractmethod
    def verify_contract(self, contract_id: str) -> Dict[str, Any]:
        """Check that a contract exists on the network."""
        pass

    @abstractmethod
    def get_account_balance(self) -> str:
        """Operator balance as display text."""
        pass

    @abstractmethod
    def get_network_status(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def explorer_links(self, transaction_id: Optional[str] = None, contract_id: Optional[str] = None) -> Dict[str, str]:
        pass


class HederaClient(LedgerClient):
    """Client for Hedera through its JSON-RPC relay and mirror node."""

    def __init__(
        self,
        account_id: str,
        private_key: str,
        network: str = 'testnet',
        json_rpc_url: Optional[str] = None,
        mirror_node_url: Optional[str] = None,
        hashscan_base_url: Optional[str] = None,
        compiler: Optional[SolidityCompiler] = None,
        gas_limit: int = 1_000_000,
        timeout: float = 30.0,
        max_retries: int = 3,
        web3: Optional[Web3] = None,
        session: Optional[requests.Session] = None,
    ):
        if not account_id or not private_key:
            raise ConfigurationError(
                "Hedera credentials not configured. Set HEDERA_ACCOUNT_ID and HEDERA_PRIVATE_KEY"
            )
        if network not in NETWORKS:
            raise ConfigurationError(
                f"Unknown Hedera network: {network}",
                details={'supported': sorted(NETWORKS)},
            )

        self.network = NETWORKS[network]
        self.account_id = account_id
        self.json_rpc_url = json_rpc_url or self.network.json_rpc_url
        self.mirror_node_url = (mirror_node_url or self.network.mirror_node_url).rstrip('/')
        self.explorer_url = (hashscan_base_url or self.network.explorer_url).rstrip('/')
        self.compiler = compiler or SolidityCompiler()
        self.gas_limit = gas_limit
        self.timeout = timeout

        self.web3 = web3 or Web3(Web3.HTTPProvider(self.json_rpc_url, request_kwargs={'timeout': timeout}))
        self.session = session or self._build_session(max_retries)

        try:
            self.account = self.web3.eth.account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid Hedera ECDSA private key: {e}") from e
        self._private_key = private_key

        logger.info(f"Hedera client initialized for {self.network.name} ({self.account_id})")

    def _build_session(self, max_retries: int) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=('GET',),
        )
        session.mount('https://', HTTPAdapter(max_retries=retry))
        session.mount('http://', HTTPAdapter(max_retries=retry))
        return session

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def deploy_contract(self, source: str, constructor_params: Optional[Sequence[Any]] = None) -> DeploymentResult:
        compiled = self.compiler.compile(source)

        try:
            contract = self.web3.eth.contract(abi=compiled.abi, bytecode=compiled.bytecode)
            tx = contract.constructor(*(constructor_params or [])).build_transaction({
                'from': self.account.address,
                'nonce': self.web3.eth.get_transaction_count(self.account.address),
                'gas': self.gas_limit,
                'gasPrice': self.web3.eth.gas_price,
                'chainId': self.network.chain_id,
            })
            receipt = self._send(tx, timeout=120)
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerError(f"Contract deployment failed: {e}") from e

        if receipt['status'] != 1 or not receipt.get('contractAddress'):
            raise LedgerError(
                "Contract deployment failed",
                details={'transaction_id': Web3.to_hex(receipt['transactionHash'])},
            )

        result = DeploymentResult(
            contract_id=receipt['contractAddress'],
            transaction_id=Web3.to_hex(receipt['transactionHash']),
            gas_used=int(receipt['gasUsed']),
            contract_name=compiled.name,
        )
        logger.info(f"Deployed {compiled.name} at {result.contract_id} (gas {result.gas_used})")
        return result

    def store_document(self, document: Dict[str, Any], memo: str = "") -> str:
        """Anchor the SHA-256 digest of the canonical document JSON."""
        canonical = json.dumps(document, sort_keys=True, separators=(',', ':'), default=str)
        digest = hashlib.sha256(canonical.encode('utf-8')).hexdigest()

        try:
            tx = {
                'from': self.account.address,
                'to': self.account.address,
                'value': 0,
                'data': '0x' + digest,
                'nonce': self.web3.eth.get_transaction_count(self.account.address),
                'gas': ANCHOR_GAS_LIMIT,
                'gasPrice': self.web3.eth.gas_price,
                'chainId': self.network.chain_id,
            }
            receipt = self._send(tx, timeout=60)
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerError(f"Failed to store document on Hedera: {e}") from e

        if receipt['status'] != 1:
            raise LedgerError("Provenance transaction reverted", details={'memo': memo})

        record_id = Web3.to_hex(receipt['transactionHash'])
        logger.info(f"Stored document '{memo}' as {record_id} (sha256 {digest[:16]}…)")
        return record_id

    def _send(self, tx: Dict[str, Any], timeout: int):
        signed = self.web3.eth.account.sign_transaction(tx, private_key=self._private_key)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)

    # ------------------------------------------------------------------
    # Mirror node queries
    # ------------------------------------------------------------------

    def verify_contract(self, contract_id: str) -> Dict[str, Any]:
        url = f"{self.mirror_node_url}/api/v1/contracts/{contract_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return {'verified': False, 'contractId': contract_id}
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.warning(f"Contract verification failed for {contract_id}: {e}")
            return {'verified': False, 'contractId': contract_id, 'error': str(e)}

        return {
            'verified': True,
            'contractId': data.get('contract_id', contract_id),
            'evmAddress': data.get('evm_address'),
            'createdTimestamp': data.get('created_timestamp'),
            'fileId': data.get('file_id'),
        }

    def get_account_balance(self) -> str:
        url = f"{self.mirror_node_url}/api/v1/balances"
        try:
            response = self.session.get(url, params={'account.id': self.account_id}, timeout=self.timeout)
            response.raise_for_status()
            balances: List[Dict[str, Any]] = response.json().get('balances', [])
        except (requests.RequestException, ValueError) as e:
            raise LedgerError(f"Failed to get account balance: {e}") from e

        if not balances:
            raise LedgerError(f"Account not found: {self.account_id}")

        hbar = Decimal(balances[0].get('balance', 0)) / TINYBARS_PER_HBAR
        return f"{hbar.normalize():f} ℏ"

    def get_network_status(self) -> Dict[str, Any]:
        status = {
            'network': self.network.name,
            'accountId': self.account_id,
            'balance': None,
            'status': 'connected',
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }
        try:
            status['balance'] = self.get_account_balance()
        except LedgerError as e:
            status['status'] = 'error'
            status['error'] = e.message
        return status

    def explorer_links(self, transaction_id: Optional[str] = None, contract_id: Optional[str] = None) -> Dict[str, str]:
        links = {}
        if transaction_id:
            links['transaction'] = f"{self.explorer_url}/transaction/{transaction_id}"
        if contract_id:
            links['contract'] = f"{self.explorer_url}/contract/{contract_id}"
        return links
