import logging
from typing import List, Optional

from storefront.backend.errors import RemoteError, TransportError
from storefront.backend.odoo_client import OdooClient
from storefront.models.schemas import OrderLineValues, ResolvedLine, SalesOrderValues

logger = logging.getLogger(__name__)


class OrderAssembler:
    """Create the sale.order from resolved lines and confirm it"""

    def __init__(self, client: OdooClient, cancel_draft_on_confirm_failure: bool = True):
        self.client = client
        self.cancel_draft_on_confirm_failure = cancel_draft_on_confirm_failure

    @staticmethod
    def build_order(partner_id: int, lines: List[ResolvedLine], note: Optional[str] = None) -> SalesOrderValues:
        # One order line per cart line, in cart order; same-name lines are not merged
        order_lines = [
            OrderLineValues(
                product_id=line.variant_id,
                name=line.name,
                product_uom_qty=line.quantity,
                price_unit=line.unit_price,
            )
            for line in lines
        ]
        return SalesOrderValues(partner_id=partner_id, order_line=order_lines, note=note or '')

    def create(self, partner_id: int, lines: List[ResolvedLine], note: Optional[str] = None) -> int:
        order = self.build_order(partner_id, lines, note)
        order_id = self.client.create('sale.order', order.to_odoo())
        logger.info(f"Created Sales Order {order_id} with {len(lines)} lines for partner {partner_id}")
        return order_id

    def confirm(self, order_id: int):
        try:
            self.client.call('sale.order', 'action_confirm', [order_id])
        except (TransportError, RemoteError) as e:
            logger.error(f"Confirmation failed for Sales Order {order_id}: {e}")
            if self.cancel_draft_on_confirm_failure:
                self._discard_draft(order_id)
            raise
        logger.info(f"Confirmed Sales Order {order_id}")

    def _discard_draft(self, order_id: int):
        try:
            self.client.call('sale.order', 'action_cancel', [order_id])
            logger.info(f"Cancelled draft Sales Order {order_id}")
        except (TransportError, RemoteError) as e:
            logger.error(f"Draft Sales Order {order_id} left behind, cancel failed: {e}")

    def create_and_confirm(self, partner_id: int, lines: List[ResolvedLine], note: Optional[str] = None) -> int:
        order_id = self.create(partner_id, lines, note)
        self.confirm(order_id)
        return order_id
