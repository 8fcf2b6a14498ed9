"""
External Collaborator Interfaces

Quotes, notifications, invoicing and purchasing live in other systems. The
scheduling engine only reaches them through these protocols; default
implementations that log the call live in the infrastructure layer.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True)
class QuoteLineItem:
    id: UUID
    description: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class Quote:
    """An accepted quote as seen by the scheduling engine."""

    id: UUID
    tenant_id: UUID
    customer_id: UUID
    quote_number: str
    notes: str | None = None
    address: str | None = None
    line_items: list[QuoteLineItem] = field(default_factory=list)


class QuoteGateway(Protocol):
    def get_accepted_quote(self, tenant_id: UUID, quote_id: UUID) -> Quote | None:
        """Return the quote if it exists in the tenant and has been accepted."""
        ...


class NotificationGateway(Protocol):
    def send(
        self,
        tenant_id: UUID,
        channel: str,
        recipient: str | None,
        subject: str,
        body: str,
        metadata: dict[str, Any],
    ) -> None: ...


class InvoiceGateway(Protocol):
    def request_invoice(
        self, tenant_id: UUID, job_id: UUID, config: dict[str, Any]
    ) -> None: ...


class PurchasingGateway(Protocol):
    def order_materials(
        self, tenant_id: UUID, job_id: UUID, items: list[dict[str, Any]]
    ) -> None: ...
