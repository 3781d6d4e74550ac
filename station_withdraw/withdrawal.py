"""
Withdrawal orchestration.

Runs a parsed withdrawal request through the authorization pipeline:

    signature -> account lock -> screening -> balance -> submit + wait

Screening, balance check and submission run while the account lock is
held; the lock is released on every exit path once taken. Failures
before the lock is taken never touch it.

The orchestrator does not know about HTTP. It returns a
WithdrawalOutcome whose kind the request adapter maps to a status code.
"""

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .chain import ChainClient, InvalidArgument
from .digest import build_digest
from .locks import AccountBusy, AccountLockManager
from .logging_config import audit_log
from .models import WithdrawalRequest
from .screening import ScreeningClient, ScreeningResult
from .signatures import MalformedSignature, recover_signer

logger = logging.getLogger(__name__)

DEFAULT_GAS_RESERVE_WEI = 10 ** 17


class OutcomeKind(str, Enum):
    """Terminal state of a withdrawal attempt."""
    OK = "OK"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    POLICY_REJECTED = "POLICY_REJECTED"
    CONFLICT = "CONFLICT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    INTERNAL = "INTERNAL"


@dataclass
class WithdrawalOutcome:
    """Result of WithdrawalOrchestrator.withdraw."""
    kind: OutcomeKind
    message: str = ""
    tx_hash: Optional[str] = None
    error: Optional[BaseException] = None

    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK


def _reject(kind: OutcomeKind, message: str, error: Optional[BaseException] = None) -> WithdrawalOutcome:
    return WithdrawalOutcome(kind=kind, message=message, error=error)


class WithdrawalOrchestrator:
    """
    Authorizes and executes on-behalf withdrawals.

    Args:
        chain: Escrow contract client
        screening: Destination screening client
        locks: Per-account lock set, shared by all requests of the process
        gas_reserve_wei: The account balance must exceed this before any
            withdrawal is submitted
        operator_address: Address bound into the digest; defaults to the
            chain client's signer
    """

    def __init__(
        self,
        chain: ChainClient,
        screening: ScreeningClient,
        locks: AccountLockManager,
        gas_reserve_wei: int = DEFAULT_GAS_RESERVE_WEI,
        operator_address: Optional[str] = None,
    ):
        self.chain = chain
        self.screening = screening
        self.locks = locks
        self.gas_reserve_wei = gas_reserve_wei
        self.operator_address = operator_address or chain.operator_address

    def withdraw(self, request: WithdrawalRequest) -> WithdrawalOutcome:
        started = time.monotonic()
        audit_log.withdrawal_request(request.account, request.target, request.value, request.nonce)

        outcome = self._withdraw(request)

        if outcome.ok():
            duration_ms = int((time.monotonic() - started) * 1000)
            audit_log.withdrawal_complete(request.account, outcome.tx_hash, duration_ms)
        else:
            audit_log.withdrawal_rejected(request.account, outcome.kind.value, outcome.message)
        return outcome

    def _withdraw(self, request: WithdrawalRequest) -> WithdrawalOutcome:
        digest = build_digest(
            request.account,
            request.nonce,
            self.operator_address,
            request.target,
            request.value,
        )
        try:
            signer = recover_signer(digest, request.v, request.r, request.s)
        except MalformedSignature as e:
            return _reject(OutcomeKind.BAD_REQUEST, f"Malformed signature ({e})")

        if signer.lower() != request.account.lower():
            audit_log.security_event(
                "SIGNER_MISMATCH", account=request.account, recovered=signer
            )
            return _reject(OutcomeKind.UNAUTHORIZED, "Invalid signature")

        try:
            with self.locks.hold(request.account):
                return self._withdraw_locked(request)
        except AccountBusy:
            return _reject(OutcomeKind.CONFLICT, "Withdrawal already in progress")

    def _withdraw_locked(self, request: WithdrawalRequest) -> WithdrawalOutcome:
        try:
            screening = self.screening.screen(request.target)
            if screening == ScreeningResult.SANCTIONED:
                audit_log.security_event(
                    "SANCTIONED_TARGET", severity="high", account=request.account, target=request.target
                )
                return _reject(OutcomeKind.FORBIDDEN, "`target` address sanctioned")
            if screening != ScreeningResult.ALLOWED:
                return _reject(OutcomeKind.UPSTREAM_UNAVAILABLE, "Failed to screen `target` address")

            balance = self.chain.balance_of(request.account)
            if balance <= self.gas_reserve_wei:
                return _reject(OutcomeKind.POLICY_REJECTED, "Insufficient balance for gas fees")
            if balance < request.value:
                return _reject(OutcomeKind.POLICY_REJECTED, "Insufficient balance")

            tx = self.chain.withdraw_on_behalf(
                request.account,
                request.target,
                request.value,
                request.v,
                request.r,
                request.s,
            )
            audit_log.withdrawal_submitted(request.account, tx.hash)
            tx.wait()
        except InvalidArgument as e:
            return _reject(
                OutcomeKind.BAD_REQUEST,
                f"Invalid argument: {json.dumps(e.value, default=str)} ({e.reason})",
            )
        except Exception as e:
            logger.exception("Withdrawal for %s failed", request.account)
            return _reject(OutcomeKind.INTERNAL, "Internal Server Error", error=e)

        return WithdrawalOutcome(kind=OutcomeKind.OK, tx_hash=tx.hash)
