"""
station-withdraw

Authorization gateway for on-behalf withdrawals from an escrow contract.

A client signs (account, nonce, operator, target, value); the gateway
verifies the signature, makes sure the account has no other withdrawal in
flight, screens the payout address, checks the escrowed balance and then
submits `withdrawOnBehalf` from the operator account.

Usage:
    from station_withdraw import (
        AccountLockManager,
        ScreeningClient,
        WithdrawalOrchestrator,
        create_app,
    )

    orchestrator = WithdrawalOrchestrator(
        chain=chain_client,
        screening=ScreeningClient("https://screening.example"),
        locks=AccountLockManager(),
    )
    app = create_app(orchestrator)
"""

__version__ = "1.0.0"

from .chain import (
    ChainClient,
    InvalidArgument,
    PendingTransaction,
    TransactionFailed,
    Web3ChainClient,
    load_operator_account,
)
from .digest import build_digest, digest_hex
from .locks import AccountBusy, AccountLockManager
from .main import create_app
from .models import WithdrawalRequest
from .screening import ScreeningClient, ScreeningResult
from .signatures import MalformedSignature, recover_signer, sign_withdrawal
from .withdrawal import (
    OutcomeKind,
    WithdrawalOrchestrator,
    WithdrawalOutcome,
)


__all__ = [
    "__version__",

    # Chain
    "ChainClient",
    "InvalidArgument",
    "PendingTransaction",
    "TransactionFailed",
    "Web3ChainClient",
    "load_operator_account",

    # Digest and signatures
    "build_digest",
    "digest_hex",
    "MalformedSignature",
    "recover_signer",
    "sign_withdrawal",

    # Locks
    "AccountBusy",
    "AccountLockManager",

    # Screening
    "ScreeningClient",
    "ScreeningResult",

    # Orchestration
    "OutcomeKind",
    "WithdrawalOrchestrator",
    "WithdrawalOutcome",
    "WithdrawalRequest",

    # HTTP
    "create_app",
]
