import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from storefront.backend.errors import InvalidPayload
from storefront.backend.fulfillment import FulfillmentCoordinator
from storefront.backend.odoo_client import OdooClient
from storefront.models.schemas import OrderSummary

logger = logging.getLogger(__name__)

ORDER_FIELDS = ['id', 'name', 'state', 'partner_id', 'partner_email', 'create_date',
                'write_date', 'amount_total']

# Odoo sale.order state -> storefront status
STATUS_MAP = {
    'draft': 'pending',
    'sale': 'processing',
    'done': 'delivered',
    'cancel': 'cancelled',
}


def summarize_order(record: Dict[str, Any]) -> OrderSummary:
    # Many2one fields come back as [id, display_name] or False
    partner = record.get('partner_id') or [None, None]
    return OrderSummary(
        id=record.get('name') or str(record['id']),
        odoo_id=record['id'],
        status=STATUS_MAP.get(record.get('state'), record.get('state') or 'unknown'),
        customer_id=partner[0],
        customer_name=partner[1],
        customer_email=record.get('partner_email') or '',
        total=record.get('amount_total') or 0,
        created_at=record.get('create_date') or None,
        updated_at=record.get('write_date') or None,
    )


class OrderAdmin:
    """Back-office operations on storefront orders"""

    def __init__(self, client: OdooClient, fulfillment: FulfillmentCoordinator = None):
        self.client = client
        self.fulfillment = fulfillment or FulfillmentCoordinator(client)

    def list_orders(self, limit: int = 80, offset: int = 0) -> List[OrderSummary]:
        records = self.client.search_read('sale.order', [], ORDER_FIELDS,
                                          limit=limit, offset=offset, order='id desc')
        logger.info(f"Fetched {len(records)} orders")
        return [summarize_order(r) for r in records]

    def get_by_name(self, name: str) -> Optional[OrderSummary]:
        """Look up one order by its reference (e.g. S00042)"""
        records = self.client.search_read('sale.order', [['name', '=', name]], ORDER_FIELDS, limit=1)
        return summarize_order(records[0]) if records else None

    def update_status(self, order_id: int, status: str) -> bool:
        if status in ('pending', 'processing'):
            # Nothing to do in Odoo: orders are confirmed at checkout
            return True
        if status == 'cancelled':
            self.client.call('sale.order', 'action_cancel', [order_id])
            logger.info(f"Cancelled Sales Order {order_id}")
            return True
        if status == 'delivered':
            report = self.fulfillment.validate_pickings(order_id)
            return report.complete
        raise InvalidPayload(f"Unknown order status: {status}")

    @staticmethod
    def export_orders(orders: List[OrderSummary]) -> bytes:
        """Excel workbook with one row per order"""
        output = io.BytesIO()
        df = pd.DataFrame([o.model_dump() for o in orders],
                          columns=list(OrderSummary.model_fields.keys()))
        df = df.rename(columns={
            'id': 'Order Reference',
            'odoo_id': 'Odoo ID',
            'status': 'Status',
            'customer_id': 'Customer ID',
            'customer_name': 'Customer',
            'customer_email': 'Email',
            'total': 'Total',
            'created_at': 'Created',
            'updated_at': 'Updated',
        })
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='Orders', index=False)
        return output.getvalue()
