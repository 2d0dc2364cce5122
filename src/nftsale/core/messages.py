"""
Message types exchanged between the host and contracts.

Inbound calls arrive as JSON-shaped dicts and are decoded by each contract.
Outbound effects are returned in a ``Response``: plain messages or
``SubMsg`` wrappers that ask the host to call back ``reply`` with the
outcome, matched by the submessage id.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from nftsale.core.exceptions import MessageDecodeError, ReplyDecodeError

if TYPE_CHECKING:
    from nftsale.core.storage import Storage

UINT128_MAX = 2**128 - 1


@dataclass(frozen=True)
class Env:
    """Execution environment of the contract being called."""

    contract_address: str
    block_height: int = 0
    block_time: float = 0.0


@dataclass(frozen=True)
class MessageInfo:
    """Who is calling. ``sender`` is the immediate caller (account or contract)."""

    sender: str


@dataclass
class Deps:
    """Dependencies injected into every entry point."""

    storage: "Storage"


# ==================== Outbound Messages ====================


@dataclass(frozen=True)
class WasmInstantiate:
    """Request to create a new contract from stored code."""

    code_id: int
    msg: Dict[str, Any]
    label: str
    admin: Optional[str] = None


@dataclass(frozen=True)
class WasmExecute:
    """Request to execute a message on another contract."""

    contract_addr: str
    msg: Dict[str, Any]


CosmosMsg = Union[WasmInstantiate, WasmExecute]


class ReplyOn(Enum):
    """When the host should call ``reply`` for a submessage."""

    ALWAYS = "always"
    ERROR = "error"
    SUCCESS = "success"
    NEVER = "never"

    def wants(self, succeeded: bool) -> bool:
        if self is ReplyOn.ALWAYS:
            return True
        if self is ReplyOn.NEVER:
            return False
        return succeeded == (self is ReplyOn.SUCCESS)


@dataclass(frozen=True)
class SubMsg:
    id: int
    msg: CosmosMsg
    reply_on: ReplyOn = ReplyOn.NEVER

    @classmethod
    def new(cls, msg: CosmosMsg) -> "SubMsg":
        """Fire-and-forget message: no reply, failure aborts the caller."""
        return cls(id=0, msg=msg, reply_on=ReplyOn.NEVER)

    @classmethod
    def reply_on_success(cls, msg: CosmosMsg, msg_id: int) -> "SubMsg":
        return cls(id=msg_id, msg=msg, reply_on=ReplyOn.SUCCESS)


@dataclass(frozen=True)
class SubMsgResult:
    """Outcome of a submessage. Exactly one of ``contract_address``/``data`` or ``error`` is meaningful."""

    contract_address: Optional[str] = None
    data: Any = None
    error: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Reply:
    id: int
    result: SubMsgResult


@dataclass
class Response:
    """Effects returned by an entry point."""

    messages: List[SubMsg] = field(default_factory=list)
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    data: Any = None

    def add_message(self, msg: CosmosMsg) -> "Response":
        self.messages.append(SubMsg.new(msg))
        return self

    def add_submessage(self, sub_msg: SubMsg) -> "Response":
        self.messages.append(sub_msg)
        return self

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append((key, str(value)))
        return self


# ==================== Decoding Helpers ====================


def parse_instantiate_reply(reply: Reply) -> str:
    """
    Extract the new contract address from an instantiate reply.

    Raises:
        ReplyDecodeError: If the submessage failed or carried no address
    """
    result = reply.result
    if not result.is_ok:
        raise ReplyDecodeError(
            f"instantiate reply {reply.id} carries an error: {result.error}",
            details={"reply_id": reply.id},
        )
    if not isinstance(result.contract_address, str) or not result.contract_address:
        raise ReplyDecodeError(
            f"instantiate reply {reply.id} has no contract address",
            details={"reply_id": reply.id},
        )
    return result.contract_address


def split_variant(msg: Any, known: Tuple[str, ...]) -> Tuple[str, Dict[str, Any]]:
    """Split ``{"tag": {...}}`` into its tag and body, rejecting unknown tags."""
    if not isinstance(msg, dict) or len(msg) != 1:
        raise MessageDecodeError(
            "message must be an object with exactly one variant",
            details={"expected": list(known)},
        )
    (tag, body), = msg.items()
    if tag not in known:
        raise MessageDecodeError(
            f"unknown variant '{tag}'", details={"tag": tag, "expected": list(known)}
        )
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise MessageDecodeError(f"variant '{tag}' body must be an object", details={"tag": tag})
    return tag, body


def require_str(body: Dict[str, Any], name: str, allow_empty: bool = False) -> str:
    value = body.get(name)
    if not isinstance(value, str) or (not allow_empty and not value):
        raise MessageDecodeError(f"field '{name}' must be a non-empty string", details={"field": name})
    return value


def parse_uint(value: Any, name: str, bits: int = 128) -> int:
    """
    Parse an unsigned integer field.

    Uint128 values travel as decimal strings; small counters (``bits=64``)
    may also be plain JSON integers.
    """
    if isinstance(value, bool):
        raise MessageDecodeError(f"field '{name}' must be an unsigned integer", details={"field": name})
    if isinstance(value, int) and bits <= 64:
        parsed = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        parsed = int(value)
    else:
        raise MessageDecodeError(f"field '{name}' must be an unsigned integer", details={"field": name})
    if parsed < 0 or parsed > 2**bits - 1:
        raise MessageDecodeError(f"field '{name}' out of range", details={"field": name})
    return parsed


def decode_binary(value: Any, name: str) -> bytes:
    """Decode a base64 ``Binary`` field. An absent value decodes to empty bytes."""
    if value is None:
        return b""
    if not isinstance(value, str):
        raise MessageDecodeError(f"field '{name}' must be base64", details={"field": name})
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MessageDecodeError(f"field '{name}' must be base64", details={"field": name}) from exc


def encode_binary(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
