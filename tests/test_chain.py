import threading
import time
from types import SimpleNamespace

import pytest
from web3 import Web3

from station_withdraw.chain import (
    InvalidArgument,
    TransactionFailed,
    Web3ChainClient,
    Web3PendingTransaction,
    load_operator_account,
)

from .conftest import OPERATOR_KEY, TARGET

HARDHAT_MNEMONIC = "test test test test test test test test test test test junk"
CONTRACT = "0x226f69aa515e57593b537cbf5e627c533f005a1f"


def fake_w3(receipt):
    waited = []

    def wait_for_transaction_receipt(tx_hash, timeout=None):
        waited.append((tx_hash, timeout))
        return receipt

    eth = SimpleNamespace(wait_for_transaction_receipt=wait_for_transaction_receipt)
    return SimpleNamespace(eth=eth), waited


def test_load_operator_from_mnemonic():
    account = load_operator_account(seed=HARDHAT_MNEMONIC)
    assert account.address == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_load_operator_from_private_key():
    account = load_operator_account(private_key=OPERATOR_KEY)
    assert Web3.is_checksum_address(account.address)


def test_load_operator_requires_key_material():
    with pytest.raises(ValueError):
        load_operator_account()


def test_pending_transaction_wait_success():
    w3, waited = fake_w3({"status": 1})
    tx = Web3PendingTransaction(w3, "0xabc", timeout=42)
    assert tx.wait() == {"status": 1}
    assert waited == [("0xabc", 42)]


def test_pending_transaction_reverted():
    w3, _ = fake_w3({"status": 0})
    tx = Web3PendingTransaction(w3, "0xabc", timeout=42)
    with pytest.raises(TransactionFailed) as ctx:
        tx.wait()
    assert ctx.value.tx_hash == "0xabc"


def test_client_exposes_operator_address():
    account = load_operator_account(private_key=OPERATOR_KEY)
    client = Web3ChainClient("http://127.0.0.1:1", CONTRACT, account)
    assert client.operator_address == account.address
    assert client.contract.address == Web3.to_checksum_address(CONTRACT)


def test_balance_of_invalid_address():
    account = load_operator_account(private_key=OPERATOR_KEY)
    client = Web3ChainClient("http://127.0.0.1:1", CONTRACT, account)
    with pytest.raises(InvalidArgument):
        client.balance_of("not-an-address")


class SequencedNode:
    """Node whose pending nonce only advances once a transaction is broadcast."""

    def __init__(self):
        self.sent = []
        self._count_lock = threading.Lock()

    def contract(self, address, abi):
        call = SimpleNamespace(build_transaction=lambda params: dict(params))
        functions = SimpleNamespace(withdrawOnBehalf=lambda *args: call)
        return SimpleNamespace(address=address, functions=functions)

    def get_transaction_count(self, address, block_identifier):
        with self._count_lock:
            count = len(self.sent)
        time.sleep(0.05)
        return count

    def send_raw_transaction(self, raw):
        with self._count_lock:
            self.sent.append(raw["nonce"])
            return len(self.sent).to_bytes(32, "big")


def test_concurrent_submissions_get_distinct_nonces():
    node = SequencedNode()
    operator = SimpleNamespace(
        address="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        sign_transaction=lambda tx: SimpleNamespace(raw_transaction=tx),
    )
    client = Web3ChainClient("http://127.0.0.1:1", CONTRACT, operator, w3=SimpleNamespace(eth=node))
    sig = "0x" + "11" * 32
    hashes = []

    def submit(account):
        hashes.append(client.withdraw_on_behalf(account, TARGET, 1, 27, sig, sig).hash)

    threads = [
        threading.Thread(target=submit, args=("0x" + "11" * 20,)),
        threading.Thread(target=submit, args=("0x" + "22" * 20,)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(node.sent) == [0, 1]
    assert len(set(hashes)) == 2
