import logging

from storefront.backend.odoo_client import OdooClient
from storefront.models.schemas import CustomerInput, PartnerValues, odoo_values

logger = logging.getLogger(__name__)


class PartnerResolver:
    """Find-or-create the Odoo customer (res.partner) for a checkout"""

    def __init__(self, client: OdooClient):
        self.client = client

    def find_by_email(self, email: str):
        partners = self.client.search_read(
            'res.partner',
            [['email', '=', email]],
            ['id'],
            limit=1
        )
        return partners[0]['id'] if partners else None

    def resolve(self, customer: CustomerInput) -> int:
        """
        Return the partner id for this customer.

        Existing partners are matched on exact email and never updated; the
        shipping address of an order lives on its label, not on the partner.
        Without an email a new partner is created every time.
        """
        if customer.email:
            partner_id = self.find_by_email(customer.email)
            if partner_id:
                logger.info(f"Found partner {partner_id} for {customer.email}")
                return partner_id

        values = PartnerValues(
            name=customer.full_name or customer.name or 'Customer',
            email=customer.email,
            street=customer.address,
            city=customer.city,
            zip=customer.zip_code,
        )
        partner_id = self.client.create('res.partner', odoo_values(values))
        logger.info(f"Created partner {partner_id} ({values.name})")
        return partner_id
