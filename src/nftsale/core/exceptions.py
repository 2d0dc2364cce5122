"""
Contract exception hierarchy for nftsale.

Typed exceptions for contract execution so the host and the HTTP layer can
tell sale precondition failures apart from storage or decode failures.
Every exception carries a stable ``code`` used in API error payloads.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ContractError(Exception):
    """Base exception for all contract execution errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        code: Stable snake_case error kind
    """

    code = "contract_error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = message or self.__class__.__doc__.strip().splitlines()[0]
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ==================== Sale Setup Errors ====================


class InvalidUnitPriceError(ContractError):
    """Unit price must be greater than zero."""

    code = "invalid_unit_price"


class InvalidMaxTokensError(ContractError):
    """Max tokens must be greater than zero."""

    code = "invalid_max_tokens"


# ==================== Linkage Errors ====================


class AlreadyLinkedError(ContractError):
    """Collection contract is already linked."""

    code = "already_linked"


class InvalidCorrelationError(ContractError):
    """Reply id does not match the collection instantiation."""

    code = "invalid_correlation"


# ==================== Purchase Errors ====================


class UninitializedError(ContractError):
    """Collection contract is not linked yet."""

    code = "uninitialized"


class SoldOutError(ContractError):
    """All tokens have been minted."""

    code = "sold_out"


class UnauthorizedTokenContractError(ContractError):
    """Payment came from an unrecognized token contract."""

    code = "unauthorized_token_contract"


class WrongPaymentAmountError(ContractError):
    """Payment amount does not equal the unit price."""

    code = "wrong_payment_amount"


# ==================== Storage & Decode Errors ====================


class StorageError(ContractError):
    """Storage operation failed."""

    code = "storage_error"


class NotFoundError(StorageError):
    """Requested record does not exist."""

    code = "not_found"


class SerializationError(StorageError):
    """Value could not be serialized or deserialized."""

    code = "serialization_error"


class MessageDecodeError(ContractError):
    """Message does not match any known schema."""

    code = "message_decode_error"


class ReplyDecodeError(ContractError):
    """Reply payload could not be decoded."""

    code = "reply_decode_error"


# ==================== Host Errors ====================


class UnauthorizedError(ContractError):
    """Caller is not allowed to perform this action."""

    code = "unauthorized"


class InsufficientFundsError(ContractError):
    """Account balance is too low."""

    code = "insufficient_funds"


class UnknownContractError(ContractError):
    """No contract is registered at the given address."""

    code = "unknown_contract"


class UnknownCodeError(ContractError):
    """No contract code is stored under the given code id."""

    code = "unknown_code"


class SubMessageDepthError(ContractError):
    """Submessage nesting exceeded the configured limit."""

    code = "submessage_depth_exceeded"


class TokenClaimedError(ContractError):
    """Token id has already been minted."""

    code = "token_claimed"


class InvalidZeroAmountError(ContractError):
    """Amount must be greater than zero."""

    code = "invalid_zero_amount"
