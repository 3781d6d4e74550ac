"""
Withdrawal digest.

The digest is what a withdrawal signature authorizes. It must match the
escrow contract's own computation byte for byte:

    keccak256(abi.encodePacked(account, nonce, operator, target, value))

with types (address, uint256, address, address, uint256). Addresses are
packed as their 20 raw bytes, integers as 32-byte big-endian words.
"""

from typing import Union

from eth_abi.packed import encode_packed
from eth_utils import keccak, to_checksum_address

DIGEST_TYPES = ["address", "uint256", "address", "address", "uint256"]


def build_digest(
    account: str,
    nonce: int,
    operator_address: str,
    target: str,
    value: int,
) -> bytes:
    """
    Compute the 32-byte withdrawal digest.

    Args:
        account: Address the funds are withdrawn from
        nonce: Caller-chosen nonce
        operator_address: Address of the operator submitting the transaction
        target: Payout address
        value: Amount in the smallest currency unit

    Returns:
        keccak-256 of the packed encoding
    """
    packed = encode_packed(
        DIGEST_TYPES,
        [
            to_checksum_address(account),
            int(nonce),
            to_checksum_address(operator_address),
            to_checksum_address(target),
            int(value),
        ],
    )
    return keccak(packed)


def digest_hex(digest: Union[bytes, str]) -> str:
    """Return the 0x-prefixed lowercase hex form of a digest."""
    if isinstance(digest, str):
        return digest.lower() if digest.startswith("0x") else "0x" + digest.lower()
    return "0x" + digest.hex()
