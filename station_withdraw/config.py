"""
Configuration module for station-withdraw.

Centralizes all configuration with environment variable support
and validation. Values are read once at import time.
"""

import os
from typing import Dict

# ============================================================
# HTTP and Chain Configuration
# ============================================================

# HTTP listener
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Requests above this size are rejected with 413
MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(100 * 1024)))

# Chain
IE_CONTRACT_ADDRESS = os.getenv("IE_CONTRACT_ADDRESS", "0x226f69aa515e57593b537cbf5e627c533f005a1f")
RPC_URL = os.getenv("RPC_URL", "https://api.calibration.node.glif.io/rpc/v0")
TX_WAIT_TIMEOUT = int(os.getenv("TX_WAIT_TIMEOUT", "300"))

# Operator key material: a BIP-39 mnemonic or a raw hex private key
WALLET_SEED = os.getenv("WALLET_SEED", "")
WALLET_PRIVATE_KEY = os.getenv("WALLET_PRIVATE_KEY", "")

# Minimum balance (wei) left for gas before a withdrawal is accepted.
# 0.1 FIL/ETH expressed in the smallest unit.
GAS_RESERVE_WEI = int(os.getenv("GAS_RESERVE_WEI", str(10 ** 17)))

# Address screening
SCREENING_URL = os.getenv("SCREENING_URL", "https://station-wallet-screening.fly.dev")
SCREENING_TIMEOUT = float(os.getenv("SCREENING_TIMEOUT", "10"))

# Error telemetry
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate that the settings needed to serve requests are present.
    Returns dict of setting -> present.
    """
    return {
        "contract_address": bool(IE_CONTRACT_ADDRESS),
        "rpc_url": bool(RPC_URL),
        "signer_key": bool(WALLET_SEED or WALLET_PRIVATE_KEY),
        "screening_url": bool(SCREENING_URL),
    }


# ============================================================
# Feature Flags
# ============================================================

def is_debug() -> bool:
    """Debug mode forces DEBUG logging regardless of LOG_LEVEL."""
    return os.getenv("STATION_WITHDRAW_DEBUG", "").lower() in ("1", "true", "yes")
