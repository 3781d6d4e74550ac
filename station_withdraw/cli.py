#!/usr/bin/env python3
"""
station-withdraw command line interface

Usage:
    station-withdraw serve [--host HOST] [--port PORT]
    station-withdraw digest --account A --nonce N --operator O --target T --value V
    station-withdraw sign --private-key K --operator O --target T --value V [--nonce N]
"""

import argparse
import json
import logging
import sys

from . import __version__, config

logger = logging.getLogger(__name__)


def build_app():
    """Build the production app from the environment configuration."""
    from .chain import Web3ChainClient, load_operator_account
    from .locks import AccountLockManager
    from .main import create_app
    from .screening import ScreeningClient
    from .withdrawal import WithdrawalOrchestrator

    account = load_operator_account(config.WALLET_SEED, config.WALLET_PRIVATE_KEY)
    chain = Web3ChainClient(
        rpc_url=config.RPC_URL,
        contract_address=config.IE_CONTRACT_ADDRESS,
        account=account,
        tx_wait_timeout=config.TX_WAIT_TIMEOUT,
    )
    screening = ScreeningClient(config.SCREENING_URL, timeout=config.SCREENING_TIMEOUT)
    orchestrator = WithdrawalOrchestrator(
        chain=chain,
        screening=screening,
        locks=AccountLockManager(),
        gas_reserve_wei=config.GAS_RESERVE_WEI,
    )
    logger.info("Operator address %s, contract %s", account.address, config.IE_CONTRACT_ADDRESS)
    return create_app(orchestrator, max_body_bytes=config.MAX_BODY_BYTES)


def cmd_serve(args):
    """Run the HTTP server."""
    import uvicorn

    from .logging_config import configure_logging
    from .telemetry import init_sentry

    level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    configure_logging(level, json_format=config.LOG_JSON)
    init_sentry(
        config.SENTRY_DSN,
        environment=config.SENTRY_ENVIRONMENT,
        release=__version__,
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
    )

    missing = [name for name, ok in config.validate_config().items() if not ok]
    if missing:
        print(f"Missing configuration: {', '.join(missing)}", file=sys.stderr)
        return 1

    app = build_app()
    logger.info("Listening on http://127.0.0.1:%s", args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0


def cmd_digest(args):
    """Print the digest a withdrawal signature must cover."""
    from .digest import build_digest, digest_hex

    digest = build_digest(args.account, args.nonce, args.operator, args.target, args.value)
    print(digest_hex(digest))
    return 0


def cmd_sign(args):
    """Sign a withdrawal and print the request body."""
    from eth_account import Account

    from .signatures import sign_withdrawal

    account = Account.from_key(args.private_key).address
    sig = sign_withdrawal(args.private_key, account, args.nonce, args.operator, args.target, args.value)
    body = {
        "account": account,
        "nonce": args.nonce,
        "target": args.target,
        "value": str(args.value),
        **sig,
    }
    print(json.dumps(body, indent=2))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="station-withdraw: signed on-behalf withdrawal gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  station-withdraw serve --port 8080
  station-withdraw digest --account 0x.. --nonce 0 --operator 0x.. --target 0x.. --value 1000
  station-withdraw sign --private-key 0x.. --operator 0x.. --target 0x.. --value 1000
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=config.HOST, help="Listen address")
    serve_parser.add_argument("--port", type=int, default=config.PORT, help="Listen port")

    digest_parser = subparsers.add_parser("digest", help="Compute a withdrawal digest")
    digest_parser.add_argument("--account", required=True)
    digest_parser.add_argument("--nonce", type=int, required=True)
    digest_parser.add_argument("--operator", required=True, help="Operator (submitter) address")
    digest_parser.add_argument("--target", required=True)
    digest_parser.add_argument("--value", type=int, required=True, help="Amount in the smallest unit")

    sign_parser = subparsers.add_parser("sign", help="Sign a withdrawal request")
    sign_parser.add_argument("--private-key", required=True, help="Key of the account owner")
    sign_parser.add_argument("--nonce", type=int, default=0)
    sign_parser.add_argument("--operator", required=True, help="Operator (submitter) address")
    sign_parser.add_argument("--target", required=True)
    sign_parser.add_argument("--value", type=int, required=True, help="Amount in the smallest unit")

    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "digest":
        return cmd_digest(args)
    elif args.command == "sign":
        return cmd_sign(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
