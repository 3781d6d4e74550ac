"""
Escrow contract client.

The orchestrator only sees the ChainClient interface: a balance lookup
and a `withdrawOnBehalf` submission returning a PendingTransaction that
can be waited on. Web3ChainClient is the production implementation:
- Uses web3.py for RPC and contract encoding
- Signs transactions locally with the operator's eth-account key
- Waits for the receipt and fails on a reverted transaction
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from eth_abi.exceptions import EncodingError
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import Web3ValidationError

logger = logging.getLogger(__name__)


ESCROW_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "withdrawOnBehalf",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "target", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "v", "type": "uint8"},
            {"name": "r", "type": "bytes32"},
            {"name": "s", "type": "bytes32"},
        ],
        "outputs": [],
    },
]


class InvalidArgument(ValueError):
    """A contract call argument was rejected before submission."""
    def __init__(self, value: Any, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"invalid argument {value!r}: {reason}")


class TransactionFailed(RuntimeError):
    """The transaction was mined but reverted."""
    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"transaction {tx_hash} reverted")


class PendingTransaction(ABC):
    """A broadcast transaction awaiting confirmation."""

    hash: str

    @abstractmethod
    def wait(self) -> Any:
        """Block until the transaction is confirmed. Returns the receipt."""


class ChainClient(ABC):
    """Operations the withdrawal flow needs from the escrow contract."""

    @property
    @abstractmethod
    def operator_address(self) -> str:
        """Address that signs and pays for submitted transactions."""

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Escrowed balance of `account` in the smallest unit."""

    @abstractmethod
    def withdraw_on_behalf(
        self, account: str, target: str, value: int, v: int, r: str, s: str
    ) -> PendingTransaction:
        """Submit `withdrawOnBehalf` and return without waiting for it."""


class Web3PendingTransaction(PendingTransaction):

    def __init__(self, w3: Web3, tx_hash: str, timeout: int):
        self._w3 = w3
        self.hash = tx_hash
        self._timeout = timeout

    def wait(self) -> Any:
        receipt = self._w3.eth.wait_for_transaction_receipt(self.hash, timeout=self._timeout)
        if receipt["status"] != 1:
            raise TransactionFailed(self.hash)
        return receipt


class Web3ChainClient(ChainClient):
    """ChainClient backed by a JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        account: LocalAccount,
        tx_wait_timeout: int = 300,
        w3: Optional[Web3] = None,
    ):
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))
        self.account = account
        self.tx_wait_timeout = tx_wait_timeout
        # held from the pending-nonce read until the transaction is broadcast
        self._submit_lock = threading.Lock()
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=ESCROW_ABI,
        )

    @property
    def operator_address(self) -> str:
        return self.account.address

    def balance_of(self, account: str) -> int:
        try:
            fn = self.contract.functions.balanceOf(Web3.to_checksum_address(account))
        except (Web3ValidationError, EncodingError, ValueError) as e:
            raise InvalidArgument(getattr(e, "value", account), str(e)) from e
        return fn.call()

    def withdraw_on_behalf(
        self, account: str, target: str, value: int, v: int, r: str, s: str
    ) -> PendingTransaction:
        try:
            fn = self.contract.functions.withdrawOnBehalf(
                Web3.to_checksum_address(account),
                Web3.to_checksum_address(target),
                value,
                v,
                bytes.fromhex(r[2:] if r.startswith("0x") else r),
                bytes.fromhex(s[2:] if s.startswith("0x") else s),
            )
        except (Web3ValidationError, EncodingError, ValueError) as e:
            raise InvalidArgument(getattr(e, "value", None), str(e)) from e

        with self._submit_lock:
            nonce = self.w3.eth.get_transaction_count(self.account.address, "pending")
            try:
                tx = fn.build_transaction({"from": self.account.address, "nonce": nonce})
            except (Web3ValidationError, EncodingError) as e:
                raise InvalidArgument(getattr(e, "value", None), str(e)) from e

            signed = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info("Submitted withdrawOnBehalf for %s: %s", account, tx_hash_hex)
        return Web3PendingTransaction(self.w3, tx_hash_hex, self.tx_wait_timeout)


def load_operator_account(seed: str = "", private_key: str = "") -> LocalAccount:
    """
    Load the operator key from a BIP-39 mnemonic or a raw private key.

    The mnemonic uses the default derivation path m/44'/60'/0'/0/0.
    """
    if seed:
        Account.enable_unaudited_hdwallet_features()
        return Account.from_mnemonic(seed)
    if private_key:
        return Account.from_key(private_key)
    raise ValueError("WALLET_SEED or WALLET_PRIVATE_KEY must be set")
