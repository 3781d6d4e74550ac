"""
Withdrawal signature recovery.

Clients sign the withdrawal digest with the "personal sign" convention
(EIP-191, version 0x45) over the text of the 0x-prefixed hex digest,
which is what `signer.signMessage(digestHex)` produces in common wallet
libraries. Recovery here applies the same prefix before ECDSA recovery.
"""

from typing import Dict, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError

from .digest import build_digest, digest_hex
from .security import ValidationError, validate_bytes32, validate_recovery_id


class MalformedSignature(ValueError):
    """Signature parameters are out of range or cannot be recovered."""


def recover_signer(digest: Union[bytes, str], v: int, r: str, s: str) -> str:
    """
    Recover the address that signed `digest`.

    Args:
        digest: The withdrawal digest (bytes or 0x-hex)
        v: Recovery id, 0/1 or 27/28
        r: 32-byte hex
        s: 32-byte hex

    Returns:
        Checksummed signer address

    Raises:
        MalformedSignature: if (v, r, s) cannot describe a valid signature
    """
    try:
        v = validate_recovery_id(v)
        r_int = int(validate_bytes32(r, "r"), 16)
        s_int = int(validate_bytes32(s, "s"), 16)
    except ValidationError as e:
        raise MalformedSignature(str(e)) from e

    message = encode_defunct(text=digest_hex(digest))
    try:
        return Account.recover_message(message, vrs=(v, r_int, s_int))
    except (BadSignature, KeyValidationError, ValueError) as e:
        raise MalformedSignature(f"signature recovery failed: {e}") from e


def sign_withdrawal(
    private_key: Union[bytes, str],
    account: str,
    nonce: int,
    operator_address: str,
    target: str,
    value: int,
) -> Dict[str, Union[int, str]]:
    """
    Client-side counterpart of recover_signer.

    Returns the (v, r, s) triple as {"v": int, "r": hex, "s": hex}.
    """
    digest = build_digest(account, nonce, operator_address, target, value)
    signed = Account.sign_message(encode_defunct(text=digest_hex(digest)), private_key)
    return {
        "v": signed.v,
        "r": "0x" + signed.r.to_bytes(32, "big").hex(),
        "s": "0x" + signed.s.to_bytes(32, "big").hex(),
    }
