"""
Prometheus metrics for hosted contract operations.

Counts every top-level host operation by entry point and outcome, and every
``action`` attribute emitted by a contract (so ``contract="nftsale:fixed-price",
action="mint"`` is the number of tokens sold).
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class SaleMetrics:
    """Metrics for contract host operations."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or REGISTRY

        self.operations_total = Counter(
            "nftsale_operations_total",
            "Total number of host operations by entry point and outcome",
            ["entry_point", "outcome"],
            registry=self.registry,
        )

        self.operation_latency = Histogram(
            "nftsale_operation_latency_seconds",
            "Host operation latency",
            ["entry_point"],
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
            registry=self.registry,
        )

        self.contract_actions_total = Counter(
            "nftsale_contract_actions_total",
            "Actions reported by contracts in committed operations",
            ["contract", "action"],
            registry=self.registry,
        )

        self.messages_dispatched_total = Counter(
            "nftsale_messages_dispatched_total",
            "Messages emitted by contracts and dispatched by the host",
            ["kind"],
            registry=self.registry,
        )

    def record_operation(self, entry_point: str, outcome: str, duration: float) -> None:
        self.operations_total.labels(entry_point=entry_point, outcome=outcome).inc()
        self.operation_latency.labels(entry_point=entry_point).observe(duration)

    def record_action(self, contract: str, action: str) -> None:
        self.contract_actions_total.labels(contract=contract, action=action).inc()

    def record_message(self, kind: str) -> None:
        self.messages_dispatched_total.labels(kind=kind).inc()
