"""
Contract Host - runs hosted contracts and dispatches the messages they emit.

Every top-level call (instantiate, execute) is one serialized, all-or-nothing
unit: it runs under the host lock against a ``CachedStorage`` overlay, and the
overlay is committed only if the entry point and every message it emitted,
recursively, succeeded. A submessage runs in a nested overlay so a failure
that the emitting contract asked to hear about (``ReplyOn.ERROR``/``ALWAYS``)
is rolled back on its own before ``reply`` is called.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from nftsale.core import config
from nftsale.core.contracts.base import Contract
from nftsale.core.exceptions import (
    ContractError,
    SubMessageDepthError,
    UnknownCodeError,
    UnknownContractError,
)
from nftsale.core.messages import (
    Deps,
    Env,
    MessageInfo,
    Reply,
    Response,
    SubMsg,
    SubMsgResult,
    WasmExecute,
    WasmInstantiate,
)
from nftsale.core.metrics import SaleMetrics
from nftsale.core.storage import CachedStorage, MemoryStorage, PrefixedStorage, Storage

logger = logging.getLogger(__name__)

ADDRESS_PREFIX = "wasm1"
SEQUENCE_KEY = "host/sequence"
CONTRACT_RECORD_PREFIX = "host/contracts/"
STATE_NAMESPACE = "state"


def derive_contract_address(creator: str, sequence: int) -> str:
    """Deterministically derive a contract address from its creator and the global sequence."""
    digest = hashlib.sha256(f"{creator.lower()}:{sequence}".encode("utf-8")).hexdigest()
    return f"{ADDRESS_PREFIX}{digest[:38]}"


@dataclass(frozen=True)
class ContractRecord:
    """Host-side metadata of a deployed contract, kept outside its storage."""

    address: str
    code_id: int
    creator: str
    label: str
    admin: Optional[str]
    created_height: int
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractRecord":
        return cls(**data)


@dataclass
class ExecutionResult:
    """Outcome of a committed host operation."""

    contract_address: Optional[str] = None
    data: Any = None
    attributes: List[Tuple[str, str, str]] = field(default_factory=list)

    def attributes_for(self, address: str) -> Dict[str, List[str]]:
        """Attributes emitted by one contract, grouped by key in emission order."""
        grouped: Dict[str, List[str]] = {}
        for contract, key, value in self.attributes:
            if contract == address:
                grouped.setdefault(key, []).append(value)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_address": self.contract_address,
            "data": self.data,
            "attributes": [
                {"contract": contract, "key": key, "value": value}
                for contract, key, value in self.attributes
            ],
        }


class ContractHost:
    """Stores contract code, deploys instances and executes messages atomically."""

    def __init__(
        self,
        storage: Optional[Storage] = None,
        metrics: Optional[SaleMetrics] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        """
        Args:
            storage: Backing storage for every contract (default: in-memory)
            metrics: Optional Prometheus metrics sink
            max_depth: Maximum submessage nesting (default from config)
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.metrics = metrics
        self.max_depth = max_depth if max_depth is not None else config.MAX_SUBMESSAGE_DEPTH
        self.block_height = 0
        self._codes: Dict[int, Contract] = {}
        self._lock = threading.RLock()

    # ==================== Code & Records ====================

    def store_code(self, contract: Contract) -> int:
        """Register contract code and return its code id (sequential from 1)."""
        with self._lock:
            code_id = len(self._codes) + 1
            self._codes[code_id] = contract
        logger.debug(
            "Contract code stored",
            extra={"event": "host.code_stored", "code_id": code_id, "contract": contract.CONTRACT_NAME},
        )
        return code_id

    def contract_info(self, address: str) -> Dict[str, Any]:
        """Host metadata plus contract name/version of a deployed contract."""
        with self._lock:
            record = self._load_record(self.storage, address)
            return {**record.to_dict(), **self._code(record.code_id).contract_info()}

    def list_contracts(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [data for _, data in self.storage.items(CONTRACT_RECORD_PREFIX)]

    # ==================== Top-Level Operations ====================

    def instantiate(
        self,
        sender: str,
        code_id: int,
        msg: Dict[str, Any],
        label: str,
        admin: Optional[str] = None,
    ) -> ExecutionResult:
        """Deploy a new contract instance. The new address is in ``result.contract_address``."""
        request = WasmInstantiate(code_id=code_id, msg=msg, label=label, admin=admin)

        def run(storage: Storage, result: ExecutionResult) -> None:
            result.contract_address = self._instantiate(storage, sender, request, result, depth=0)

        return self._run("instantiate", run)

    def execute(self, sender: str, contract_addr: str, msg: Dict[str, Any]) -> ExecutionResult:
        """Execute a message on a deployed contract."""
        request = WasmExecute(contract_addr=contract_addr, msg=msg)

        def run(storage: Storage, result: ExecutionResult) -> None:
            result.contract_address = contract_addr
            result.data = self._execute(storage, sender, request, result, depth=0)

        return self._run("execute", run)

    def query(self, contract_addr: str, msg: Dict[str, Any]) -> Dict[str, Any]:
        """Run a read-only query against committed state."""
        with self._lock:
            record = self._load_record(self.storage, contract_addr)
            contract = self._code(record.code_id)
            return contract.query(
                self._deps(self.storage, contract_addr), self._env(contract_addr), msg
            )

    def _run(self, entry_point: str, fn: Callable[[Storage, ExecutionResult], None]) -> ExecutionResult:
        with self._lock:
            started = time.perf_counter()
            self.block_height += 1
            cache = CachedStorage(self.storage)
            result = ExecutionResult()
            try:
                fn(cache, result)
            except ContractError as exc:
                logger.warning(
                    "Operation rolled back",
                    extra={
                        "event": "host.rolled_back",
                        "entry_point": entry_point,
                        "height": self.block_height,
                        "code": exc.code,
                        "error": exc.message,
                    },
                )
                self._record(entry_point, exc.code, started)
                raise
            except Exception:
                logger.exception(
                    "Operation failed unexpectedly",
                    extra={"event": "host.internal_error", "entry_point": entry_point},
                )
                self._record(entry_point, "internal_error", started)
                raise

            writes = cache.commit()
            self._record(entry_point, "success", started)
            if self.metrics:
                for contract_addr, key, value in result.attributes:
                    if key == "action":
                        self.metrics.record_action(self._contract_name(contract_addr), value)

            logger.info(
                "Operation committed",
                extra={
                    "event": "host.executed",
                    "entry_point": entry_point,
                    "contract": result.contract_address,
                    "height": self.block_height,
                    "writes": writes,
                },
            )
            return result

    # ==================== Dispatch ====================

    def _instantiate(
        self,
        storage: Storage,
        sender: str,
        request: WasmInstantiate,
        result: ExecutionResult,
        depth: int,
    ) -> str:
        contract = self._code(request.code_id)
        sequence = (storage.get(SEQUENCE_KEY) or 0) + 1
        storage.set(SEQUENCE_KEY, sequence)

        address = derive_contract_address(sender, sequence)
        record = ContractRecord(
            address=address,
            code_id=request.code_id,
            creator=sender,
            label=request.label,
            admin=request.admin,
            created_height=self.block_height,
            created_at=time.time(),
        )
        storage.set(f"{CONTRACT_RECORD_PREFIX}{address}", record.to_dict())

        response = contract.instantiate(
            self._deps(storage, address), self._env(address), MessageInfo(sender=sender), request.msg
        )
        logger.info(
            "Contract instantiated",
            extra={
                "event": "host.instantiated",
                "address": address,
                "code_id": request.code_id,
                "creator": sender,
                "label": request.label,
            },
        )
        self._dispatch(storage, address, contract, response, result, depth)
        return address

    def _execute(
        self,
        storage: Storage,
        sender: str,
        request: WasmExecute,
        result: ExecutionResult,
        depth: int,
    ) -> Any:
        record = self._load_record(storage, request.contract_addr)
        contract = self._code(record.code_id)
        response = contract.execute(
            self._deps(storage, record.address),
            self._env(record.address),
            MessageInfo(sender=sender),
            request.msg,
        )
        self._dispatch(storage, record.address, contract, response, result, depth)
        return response.data

    def _dispatch(
        self,
        storage: Storage,
        address: str,
        contract: Contract,
        response: Response,
        result: ExecutionResult,
        depth: int,
    ) -> None:
        """Record attributes, then run emitted messages in order, depth-first."""
        result.attributes.extend((address, key, value) for key, value in response.attributes)

        for sub_msg in response.messages:
            if depth + 1 > self.max_depth:
                raise SubMessageDepthError(details={"max_depth": self.max_depth})
            outcome = self._run_submessage(storage, address, sub_msg, result, depth + 1)
            if outcome is None:
                continue
            reply_response = contract.reply(
                self._deps(storage, address), self._env(address), Reply(id=sub_msg.id, result=outcome)
            )
            self._dispatch(storage, address, contract, reply_response, result, depth)

    def _run_submessage(
        self,
        storage: Storage,
        sender: str,
        sub_msg: SubMsg,
        result: ExecutionResult,
        depth: int,
    ) -> Optional[SubMsgResult]:
        """
        Run one emitted message in its own overlay.

        Returns the result to deliver to ``reply``, or None when no reply is due.
        Failures the sender did not ask to hear about propagate.
        """
        overlay = CachedStorage(storage)
        sub_result = ExecutionResult()
        msg = sub_msg.msg
        kind = "instantiate" if isinstance(msg, WasmInstantiate) else "execute"
        if self.metrics:
            self.metrics.record_message(kind)

        try:
            if isinstance(msg, WasmInstantiate):
                outcome = SubMsgResult(
                    contract_address=self._instantiate(overlay, sender, msg, sub_result, depth)
                )
            else:
                outcome = SubMsgResult(data=self._execute(overlay, sender, msg, sub_result, depth))
        except ContractError as exc:
            if not sub_msg.reply_on.wants(False):
                raise
            logger.info(
                "Submessage failed, delivering error reply",
                extra={"event": "host.submessage_failed", "msg_id": sub_msg.id, "code": exc.code},
            )
            return SubMsgResult(error=f"{exc.code}: {exc.message}")

        overlay.commit()
        result.attributes.extend(sub_result.attributes)
        return outcome if sub_msg.reply_on.wants(True) else None

    # ==================== Helpers ====================

    def _code(self, code_id: int) -> Contract:
        contract = self._codes.get(code_id)
        if contract is None:
            raise UnknownCodeError(f"no code stored under id {code_id}", details={"code_id": code_id})
        return contract

    def _load_record(self, storage: Storage, address: str) -> ContractRecord:
        data = storage.get(f"{CONTRACT_RECORD_PREFIX}{address}")
        if data is None:
            raise UnknownContractError(
                f"no contract at address {address}", details={"address": address}
            )
        return ContractRecord.from_dict(data)

    def _contract_name(self, address: str) -> str:
        record = self._load_record(self.storage, address)
        return self._code(record.code_id).CONTRACT_NAME

    def _deps(self, storage: Storage, address: str) -> Deps:
        return Deps(storage=PrefixedStorage(storage, f"{STATE_NAMESPACE}/{address}"))

    def _env(self, address: str) -> Env:
        return Env(contract_address=address, block_height=self.block_height, block_time=time.time())

    def _record(self, entry_point: str, outcome: str, started: float) -> None:
        if self.metrics:
            self.metrics.record_operation(entry_point, outcome, time.perf_counter() - started)
