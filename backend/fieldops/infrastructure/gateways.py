"""
Default external collaborators.

Until real integrations are wired in, outbound calls are logged and quote
lookups find nothing.
"""

from typing import Any
from uuid import UUID

from fieldops.core.observability import get_logger
from fieldops.domain.scheduling.gateways import Quote

logger = get_logger(__name__)


class LoggingQuoteGateway:
    def get_accepted_quote(self, tenant_id: UUID, quote_id: UUID) -> Quote | None:
        logger.info(
            "Quote lookup requested; no quote source configured",
            tenant_id=str(tenant_id),
            quote_id=str(quote_id),
        )
        return None


class LoggingNotificationGateway:
    def send(
        self,
        tenant_id: UUID,
        channel: str,
        recipient: str | None,
        subject: str,
        body: str,
        metadata: dict[str, Any],
    ) -> None:
        logger.info(
            "Notification sent",
            tenant_id=str(tenant_id),
            channel=channel,
            recipient=recipient,
            subject=subject,
            metadata=metadata,
        )


class LoggingInvoiceGateway:
    def request_invoice(self, tenant_id: UUID, job_id: UUID, config: dict[str, Any]) -> None:
        logger.info(
            "Invoice requested", tenant_id=str(tenant_id), job_id=str(job_id), config=config
        )


class LoggingPurchasingGateway:
    def order_materials(
        self, tenant_id: UUID, job_id: UUID, items: list[dict[str, Any]]
    ) -> None:
        logger.info(
            "Materials ordered",
            tenant_id=str(tenant_id),
            job_id=str(job_id),
            item_count=len(items),
        )
