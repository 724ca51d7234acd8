from decimal import Decimal

import pytest

from storefront.backend.fulfillment import FulfillmentCoordinator
from storefront.backend.odoo_client import OdooClient
from storefront.backend.order_assembler import OrderAssembler
from storefront.backend.order_workflow import OrderWorkflow
from storefront.backend.product_resolver import ProductResolver
from storefront.models.schemas import CartItem, CustomerInput
from tests.fake_odoo import FakeOdooServer


def fake_label(order_id, tracking_id, recipient_name, address_lines):
    return f"LABEL {order_id} {tracking_id} {recipient_name}".encode()


@pytest.fixture
def server():
    return FakeOdooServer()


@pytest.fixture
def client(server):
    return OdooClient('http://odoo.test', 'datab', 'admin', 'secret',
                      proxy_factory=server.proxy_factory)


@pytest.fixture
def fulfillment(client):
    return FulfillmentCoordinator(client, render_label=fake_label,
                                  make_tracking_number=lambda: 'TRK1700000000000')


@pytest.fixture
def workflow(client, fulfillment):
    return OrderWorkflow(
        client,
        products=ProductResolver(client, sleep=lambda _: None),
        assembler=OrderAssembler(client),
        fulfillment=fulfillment,
    )


@pytest.fixture
def customer():
    return CustomerInput(
        email='a@b.com',
        firstName='Jane',
        lastName='Doe',
        address='12 Market Street',
        city='Springfield',
        state='IL',
        zipCode='62701',
        country='US',
    )


@pytest.fixture
def ring():
    return CartItem(name='Silver Ring', quantity=2, unitPrice=Decimal('50.00'))
