import threading

import pytest
from eth_account import Account
from fastapi.testclient import TestClient

from station_withdraw.chain import ChainClient, PendingTransaction
from station_withdraw.locks import AccountLockManager
from station_withdraw.main import create_app
from station_withdraw.screening import ScreeningResult
from station_withdraw.signatures import sign_withdrawal
from station_withdraw.withdrawal import WithdrawalOrchestrator

OPERATOR_KEY = "0x" + "01" * 32
ALICE_KEY = "0x" + "a1" * 32
BOB_KEY = "0x" + "b0" * 32
TARGET = "0x000000000000000000000000000000000000dEaD"
ONE_ETHER = 10 ** 18
TX_HASH = "0x" + "ab" * 32


class FakePendingTransaction(PendingTransaction):

    def __init__(self, tx_hash, on_wait=None):
        self.hash = tx_hash
        self._on_wait = on_wait

    def wait(self):
        if self._on_wait:
            self._on_wait()
        return {"status": 1, "transactionHash": self.hash}


class FakeChain(ChainClient):
    """Records calls; `gate` makes wait() block until it is set."""

    def __init__(self, operator_address, balance=ONE_ETHER, tx_hash=TX_HASH):
        self._operator = operator_address
        self.balance = balance
        self.tx_hash = tx_hash
        self.calls = []
        self.gate = None
        self.barrier = None
        self.waiting = threading.Event()
        self.balance_error = None
        self.submit_error = None

    @property
    def operator_address(self):
        return self._operator

    def balance_of(self, account):
        self.calls.append(("balance_of", account))
        if self.balance_error:
            raise self.balance_error
        return self.balance

    def withdraw_on_behalf(self, account, target, value, v, r, s):
        self.calls.append(("withdraw_on_behalf", account, target, value, v, r, s))
        if self.submit_error:
            raise self.submit_error
        return FakePendingTransaction(self.tx_hash, self._wait)

    def _wait(self):
        self.waiting.set()
        if self.barrier:
            self.barrier.wait()
        if self.gate:
            self.gate.wait(timeout=10)

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


class FakeScreening:

    def __init__(self, result=ScreeningResult.ALLOWED):
        self.result = result
        self.calls = []

    def screen(self, address):
        self.calls.append(address)
        return self.result


@pytest.fixture
def operator():
    return Account.from_key(OPERATOR_KEY)


@pytest.fixture
def alice():
    return Account.from_key(ALICE_KEY)


@pytest.fixture
def bob():
    return Account.from_key(BOB_KEY)


@pytest.fixture
def chain(operator):
    return FakeChain(operator.address)


@pytest.fixture
def screening():
    return FakeScreening()


@pytest.fixture
def locks():
    return AccountLockManager()


@pytest.fixture
def orchestrator(chain, screening, locks):
    return WithdrawalOrchestrator(chain=chain, screening=screening, locks=locks)


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator))


@pytest.fixture
def make_body(operator):
    """Build a signed request body for `signer`."""
    def _make(signer, nonce=0, target=TARGET, value=ONE_ETHER // 2, signed_nonce=None):
        sig = sign_withdrawal(
            signer.key,
            signer.address,
            nonce if signed_nonce is None else signed_nonce,
            operator.address,
            target,
            value,
        )
        return {
            "account": signer.address,
            "nonce": nonce,
            "target": target,
            "value": str(value),
            **sig,
        }
    return _make
