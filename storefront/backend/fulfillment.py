import base64
import time
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from storefront.backend import label_renderer
from storefront.backend.odoo_client import OdooClient, normalize_ids
from storefront.models.schemas import AttachmentValues, CustomerInput, PickingRecord, odoo_values

logger = logging.getLogger(__name__)


@dataclass
class PickingReport:
    validated: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)  # already done
    failed: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


def tracking_number() -> str:
    """Time based reference for humans; not collision proof"""
    return f"TRK{int(time.time() * 1000)}"


def recipient_name(customer: CustomerInput) -> str:
    if customer.first_name:
        return f"{customer.first_name} {customer.last_name or ''}".strip()
    return customer.name or ''


def address_lines(customer: CustomerInput) -> List[str]:
    parts = [customer.address, customer.city, customer.state, customer.zip_code, customer.country]
    return [p for p in parts if p]


class FulfillmentCoordinator:
    """
    Post-confirmation side effects of an order: invoice, pickings, label.

    Each public step raises on failure; isolation between steps is the
    caller's job (see steps.collect_best_effort).
    """

    def __init__(self, client: OdooClient, invoice_method: str = '_create_invoices',
                 render_label: Callable[..., bytes] = label_renderer.render_label,
                 make_tracking_number: Callable[[], str] = tracking_number):
        self.client = client
        self.invoice_method = invoice_method
        self.render_label = render_label
        self.make_tracking_number = make_tracking_number

    # ---------- Invoicing ----------

    def create_invoice(self, order_id: int) -> Optional[int]:
        """Create and post the invoice; None when there is nothing to invoice"""
        invoice_ids = normalize_ids(self.client.call('sale.order', self.invoice_method, [order_id]))
        if not invoice_ids:
            logger.info(f"No invoice created for Sales Order {order_id}")
            return None

        self.client.call('account.move', 'action_post', invoice_ids)
        logger.info(f"Posted invoice(s) {invoice_ids} for Sales Order {order_id}")
        return invoice_ids[0]

    # ---------- Pickings ----------

    def get_pickings(self, order_id: int) -> List[PickingRecord]:
        records = self.client.search_read(
            'stock.picking',
            [['sale_id', '=', order_id]],
            ['id', 'state', 'name']
        )
        return [PickingRecord(**r) for r in records]

    def validate_picking(self, picking_id: int):
        """Validate; on failure reserve stock and validate exactly once more"""
        try:
            self.client.call('stock.picking', 'button_validate', [picking_id])
            return
        except Exception as e:
            logger.warning(f"Validation of picking {picking_id} failed ({e}), reserving and retrying")

        try:
            self.client.call('stock.picking', 'action_assign', [picking_id])
        except Exception as e:
            logger.warning(f"Reservation of picking {picking_id} failed: {e}")

        self.client.call('stock.picking', 'button_validate', [picking_id])

    def validate_pickings(self, order_id: int) -> PickingReport:
        report = PickingReport()
        for picking in self.get_pickings(order_id):
            if picking.state == 'done':
                report.skipped.append(picking.id)
                continue
            try:
                self.validate_picking(picking.id)
                report.validated.append(picking.id)
            except Exception as e:
                logger.warning(f"Giving up on picking {picking.id} of Sales Order {order_id}: {e}")
                report.failed.append(picking.id)

        logger.info(f"Pickings for Sales Order {order_id}: {len(report.validated)} validated, "
                    f"{len(report.skipped)} already done, {len(report.failed)} failed")
        return report

    # ---------- Shipping label ----------

    def attach_shipping_label(self, order_id: int, customer: CustomerInput) -> int:
        tracking_id = self.make_tracking_number()
        pdf_bytes = self.render_label(order_id, tracking_id, recipient_name(customer), address_lines(customer))

        attachment = AttachmentValues(
            name=f"ShippingLabel_{order_id}.pdf",
            datas=base64.b64encode(pdf_bytes).decode('ascii'),
            res_model='sale.order',
            res_id=order_id,
        )
        attachment_id = self.client.create('ir.attachment', odoo_values(attachment))
        logger.info(f"Attached shipping label {attachment_id} ({tracking_id}) to Sales Order {order_id}")
        return attachment_id
