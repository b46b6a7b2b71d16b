"""Product Moderation — admin removal of a listing.

Invariants:
    - Removal is a compare-and-swap available -> deleted; it never overwrites
      a status the exchange engine has set
    - Products already exchanged, sold or deleted cannot be removed (InvalidState)
    - The owner receives a product_deleted notification after commit
    - Pending exchanges that reference the removed product stay pending; accepting
      them later fails with ConflictError because the product is no longer available
"""

import logging

from campus_swap.core.domain_types import ProductId, ProductStatus
from campus_swap.core.errors import (
    ConflictError, ErrorContext, InvalidStateError, ResourceNotFoundError,
)
from campus_swap.core.notification_payloads import product_deleted
from campus_swap.core.records import ProductRecord
from campus_swap.core.repository_protocols import (
    NotificationSink, PersistenceStore, Transaction,
)
from campus_swap.services.notification_delivery import deliver_best_effort

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Moderation"


class ProductModeration:

    def __init__(
        self,
        store: PersistenceStore,
        sink: NotificationSink,
        notification_timeout: float = 2.0,
    ):
        self.store = store
        self.sink = sink
        self.notification_timeout = notification_timeout

    async def remove_product(
        self,
        product_id: ProductId,
        reason: str | None = None,
        timeout: float | None = None,
    ) -> ProductRecord:
        reason = (reason or "").strip() or DEFAULT_REASON

        async def _remove(tx: Transaction) -> ProductRecord:
            product = (await tx.lock_products([product_id])).get(product_id)
            if product is None:
                raise ResourceNotFoundError("Product", str(product_id))
            if not product.is_available:
                raise InvalidStateError(
                    f"Only available products can be removed (status: {product.status.value})",
                    current_status=product.status.value,
                )
            removed = await tx.set_product_status(
                product_id, ProductStatus.AVAILABLE, ProductStatus.DELETED,
            )
            if not removed:
                raise ConflictError(
                    "Product changed while it was being removed",
                    ErrorContext(debug_info={"product_id": str(product_id)}),
                )
            return product

        product = await self.store.run_transaction(_remove, timeout)
        logger.info(
            "Product removed by moderation",
            extra={"product_id": product_id, "student_id": product.owner_id},
        )
        await deliver_best_effort(
            self.sink,
            product_deleted(product.owner_id, product.title, reason),
            self.notification_timeout,
        )
        return await self.store.get_product(product_id, timeout) or product
