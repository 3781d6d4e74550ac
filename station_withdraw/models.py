from pydantic import BaseModel, field_validator

from .security import validate_address, validate_bytes32, validate_uint256


class WithdrawalRequest(BaseModel):
    """A signed request to withdraw `value` from `account` to `target`."""
    account: str
    nonce: int
    target: str
    value: int
    v: int
    r: str
    s: str

    @field_validator("account", "target", mode="before")
    @classmethod
    def _address(cls, value, info):
        return validate_address(value, info.field_name)

    @field_validator("nonce", "value", mode="before")
    @classmethod
    def _uint256(cls, value, info):
        return validate_uint256(value, info.field_name)

    @field_validator("r", "s", mode="before")
    @classmethod
    def _bytes32(cls, value, info):
        return validate_bytes32(value, info.field_name)
