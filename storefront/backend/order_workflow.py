"""
Order-creation workflow: cart in, confirmed Odoo sale order out.

Failures up to and including order confirmation reject the order. Once the
order is confirmed, invoicing, picking validation, the shipping label and the
confirmation email are best effort and the submission always completes.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from storefront.backend.errors import InvalidPayload, OrderRejected
from storefront.backend.fulfillment import FulfillmentCoordinator
from storefront.backend.notifications import NotificationDispatcher
from storefront.backend.odoo_client import OdooClient
from storefront.backend.order_assembler import OrderAssembler
from storefront.backend.partner_resolver import PartnerResolver
from storefront.backend.product_resolver import ProductResolver
from storefront.backend.steps import collect_best_effort
from storefront.models.schemas import CartItem, CustomerInput, OrderResult, ResolvedLine

logger = logging.getLogger(__name__)

INVALID_PAYLOAD_MESSAGE = "Invalid payload - customer and items are required"


class OrderState(str, Enum):
    RECEIVED = 'received'
    PARTNER_RESOLVED = 'partner_resolved'
    LINES_RESOLVED = 'lines_resolved'
    ORDER_CREATED = 'order_created'
    ORDER_CONFIRMED = 'order_confirmed'
    FULFILLMENT_ATTEMPTED = 'fulfillment_attempted'
    COMPLETE = 'complete'
    REJECTED = 'rejected'


class OrderRun:
    """Progress of a single submission"""

    def __init__(self):
        self.state = OrderState.RECEIVED
        self.history: List[OrderState] = [OrderState.RECEIVED]

    def advance(self, state: OrderState):
        self.state = state
        self.history.append(state)
        logger.debug(f"Order workflow -> {state.value}")


def order_note(note: Optional[str], shipping_cost: Decimal) -> str:
    parts = [note] if note else []
    if shipping_cost and shipping_cost > 0:
        parts.append(f"Shipping: {shipping_cost:.2f}")
    return '\n'.join(parts)


class OrderWorkflow:
    def __init__(self, client: OdooClient,
                 partners: Optional[PartnerResolver] = None,
                 products: Optional[ProductResolver] = None,
                 assembler: Optional[OrderAssembler] = None,
                 fulfillment: Optional[FulfillmentCoordinator] = None,
                 notifier: Optional[NotificationDispatcher] = None):
        self.client = client
        self.partners = partners or PartnerResolver(client)
        self.products = products or ProductResolver(client)
        self.assembler = assembler or OrderAssembler(client)
        self.fulfillment = fulfillment or FulfillmentCoordinator(client)
        self.notifier = notifier or NotificationDispatcher()

    @classmethod
    def from_settings(cls, client: OdooClient, settings: Dict[str, Any],
                      notifier: Optional[NotificationDispatcher] = None) -> 'OrderWorkflow':
        order_settings = settings.get('orders', {})
        return cls(
            client,
            products=ProductResolver(
                client,
                product_type=order_settings.get('product_type', 'consu'),
                variant_poll_attempts=order_settings.get('variant_poll_attempts', 2),
                variant_poll_interval=order_settings.get('variant_poll_interval', 0.5),
            ),
            assembler=OrderAssembler(
                client,
                cancel_draft_on_confirm_failure=order_settings.get('cancel_draft_on_confirm_failure', True),
            ),
            fulfillment=FulfillmentCoordinator(
                client,
                invoice_method=order_settings.get('invoice_method', '_create_invoices'),
            ),
            notifier=notifier,
        )

    def resolve_lines(self, items: List[CartItem]) -> List[ResolvedLine]:
        """All cart lines resolve, or the exception propagates before any order exists"""
        return [
            ResolvedLine(
                variant_id=self.products.resolve_variant(item.name, item.unit_price),
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in items
        ]

    def submit(self, customer: Optional[CustomerInput], items: List[CartItem],
               shipping_cost: Decimal = Decimal('0'), note: Optional[str] = None) -> OrderResult:
        run = OrderRun()

        if customer is None or not items:
            run.advance(OrderState.REJECTED)
            logger.warning(f"Rejected order: customer={customer is not None}, items={len(items or [])}")
            raise InvalidPayload(INVALID_PAYLOAD_MESSAGE, run.state.value)

        logger.info(f"Received order for {customer.email or customer.full_name or 'anonymous'} "
                    f"with {len(items)} items")

        try:
            partner_id = self.partners.resolve(customer)
            run.advance(OrderState.PARTNER_RESOLVED)

            lines = self.resolve_lines(items)
            run.advance(OrderState.LINES_RESOLVED)

            order_id = self.assembler.create(partner_id, lines, order_note(note, shipping_cost))
            run.advance(OrderState.ORDER_CREATED)

            self.assembler.confirm(order_id)
            run.advance(OrderState.ORDER_CONFIRMED)
        except Exception as e:
            failed_at = run.state
            run.advance(OrderState.REJECTED)
            logger.error(f"Order creation failed after state '{failed_at.value}': {e}")
            raise OrderRejected(str(e), failed_at.value) from e

        outcomes = collect_best_effort([
            ('invoice', lambda: self.fulfillment.create_invoice(order_id)),
            ('pickings', lambda: self.fulfillment.validate_pickings(order_id)),
            ('label', lambda: self.fulfillment.attach_shipping_label(order_id, customer)),
        ])
        run.advance(OrderState.FULFILLMENT_ATTEMPTED)

        self.notifier.notify_order_confirmation(customer.email, order_id)

        result = OrderResult(
            order_id=order_id,
            invoice_id=outcomes['invoice'].value_or_none(),
            label_attachment_id=outcomes['label'].value_or_none(),
        )
        run.advance(OrderState.COMPLETE)
        logger.info(f"Order creation successful: {result.model_dump()}")
        return result
