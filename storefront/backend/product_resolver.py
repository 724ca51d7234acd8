import time
import logging
from decimal import Decimal
from typing import Optional

from storefront.backend.odoo_client import OdooClient
from storefront.models.schemas import ProductTemplateValues, odoo_values

logger = logging.getLogger(__name__)


class ProductResolver:
    """
    Find-or-create a sellable product by name and pick a variant for order lines.

    Matching is exact and case-sensitive on product.template name. An existing
    template keeps its list price even when the cart price differs.
    """

    def __init__(self, client: OdooClient, product_type: str = 'consu',
                 variant_poll_attempts: int = 2, variant_poll_interval: float = 0.5,
                 sleep=time.sleep):
        self.client = client
        self.product_type = product_type
        self.variant_poll_attempts = variant_poll_attempts
        self.variant_poll_interval = variant_poll_interval
        self._sleep = sleep

    def find_template(self, name: str) -> Optional[int]:
        templates = self.client.search_read(
            'product.template',
            [['name', '=', name]],
            ['id'],
            limit=1
        )
        return templates[0]['id'] if templates else None

    def find_variant(self, template_id: int) -> Optional[int]:
        variants = self.client.search_read(
            'product.product',
            [['product_tmpl_id', '=', template_id]],
            ['id'],
            limit=1
        )
        return variants[0]['id'] if variants else None

    def resolve_template(self, name: str, price: Decimal) -> tuple:
        """Returns (template_id, created)"""
        template_id = self.find_template(name)
        if template_id:
            return template_id, False

        values = ProductTemplateValues(name=name, list_price=price, type=self.product_type)
        template_id = self.client.create('product.template', odoo_values(values))
        logger.info(f"Created product template {template_id} for '{name}'")
        return template_id, True

    def resolve_variant(self, name: str, price: Decimal) -> Optional[int]:
        template_id, created = self.resolve_template(name, price)
        variant_id = self.find_variant(template_id)

        # Odoo may generate the default variant after the template create returns
        attempts = self.variant_poll_attempts if created else 0
        while variant_id is None and attempts > 0:
            attempts -= 1
            self._sleep(self.variant_poll_interval)
            variant_id = self.find_variant(template_id)

        if variant_id is None:
            logger.warning(f"No variant for template {template_id} ('{name}'), order line will have no product")
        return variant_id
