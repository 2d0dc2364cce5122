"""
Base class for contracts hosted by ``ContractHost``.

A contract class holds no state of its own: every entry point receives its
storage through ``deps``, so one instance can serve any number of deployed
addresses.
"""

from __future__ import annotations

from typing import Any, Dict

from nftsale.core.exceptions import MessageDecodeError
from nftsale.core.messages import Deps, Env, MessageInfo, Reply, Response


class Contract:
    """Entry points a hosted contract may implement."""

    CONTRACT_NAME = "nftsale:contract"
    CONTRACT_VERSION = "0.1.0"

    def instantiate(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        raise NotImplementedError

    def execute(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        raise MessageDecodeError(f"{self.CONTRACT_NAME} accepts no execute messages")

    def query(self, deps: Deps, env: Env, msg: Dict[str, Any]) -> Dict[str, Any]:
        raise MessageDecodeError(f"{self.CONTRACT_NAME} accepts no queries")

    def reply(self, deps: Deps, env: Env, reply: Reply) -> Response:
        raise MessageDecodeError(f"{self.CONTRACT_NAME} does not handle replies")

    def contract_info(self) -> Dict[str, str]:
        return {"contract": self.CONTRACT_NAME, "version": self.CONTRACT_VERSION}
