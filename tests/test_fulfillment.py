import base64
import http.client

import pytest

from storefront.backend.errors import RemoteError
from storefront.backend.fulfillment import address_lines, recipient_name, tracking_number
from storefront.models.schemas import CustomerInput, PickingRecord


def confirmed_order(server, pickings=1, state='confirmed', named=True):
    order_id = server.add('sale.order', state='sale')
    for n in range(pickings):
        values = {'name': f'WH/OUT/{order_id:03d}{n}'} if named else {}
        server.add('stock.picking', sale_id=order_id, state=state, **values)
    return order_id


def test_invoice_is_created_and_posted(fulfillment, server):
    server.allow_private_methods = True
    order_id = confirmed_order(server)
    invoice_id = fulfillment.create_invoice(order_id)

    assert server.records['account.move'][invoice_id]['state'] == 'posted'


def test_first_of_several_invoices_is_returned(fulfillment, server):
    server.allow_private_methods = True
    order_id = confirmed_order(server)
    server.invoice_ids = [41, 42]
    server.records['account.move'][41] = {'id': 41, 'state': 'draft'}
    server.records['account.move'][42] = {'id': 42, 'state': 'draft'}

    assert fulfillment.create_invoice(order_id) == 41
    assert server.calls[-1][2] == [[41, 42]]


def test_empty_invoice_result_returns_none(fulfillment, server):
    server.allow_private_methods = True
    order_id = confirmed_order(server)
    server.invoice_ids = False
    assert fulfillment.create_invoice(order_id) is None


def test_private_invoice_method_refused_by_server(fulfillment, server):
    order_id = confirmed_order(server)
    with pytest.raises(RemoteError) as exc_info:
        fulfillment.create_invoice(order_id)
    assert 'cannot be called remotely' in exc_info.value.message
    assert server.records['account.move'] == {}


def test_unnamed_pickings_are_read(fulfillment, server):
    order_id = confirmed_order(server, pickings=2, named=False)
    pickings = fulfillment.get_pickings(order_id)

    assert [p.name for p in pickings] == [None, None]
    assert fulfillment.validate_pickings(order_id).validated == [p.id for p in pickings]


def test_picking_record_maps_odoo_false_to_none():
    assert PickingRecord(id=1, state='assigned', name=False).name is None
    assert PickingRecord(id=1, state='assigned', name='WH/OUT/00001').name == 'WH/OUT/00001'


def test_pickings_already_done_are_skipped(fulfillment, server):
    order_id = confirmed_order(server, pickings=2, state='done')
    report = fulfillment.validate_pickings(order_id)

    assert len(report.skipped) == 2
    assert ('stock.picking', 'button_validate') not in server.methods()


def test_failed_validation_reserves_then_retries_once(fulfillment, server):
    order_id = confirmed_order(server)
    server.fail('stock.picking', 'button_validate')
    report = fulfillment.validate_pickings(order_id)

    picking_methods = [m for model, m in server.methods() if model == 'stock.picking']
    assert picking_methods == ['search_read', 'button_validate', 'action_assign', 'button_validate']
    assert report.validated and report.complete


def test_picking_gives_up_after_second_validation_failure(fulfillment, server):
    order_id = confirmed_order(server)
    server.fail('stock.picking', 'button_validate', times=2)
    report = fulfillment.validate_pickings(order_id)

    assert server.methods().count(('stock.picking', 'button_validate')) == 2
    assert len(report.failed) == 1
    assert not report.complete


def test_reservation_failure_still_retries_validation(fulfillment, server):
    order_id = confirmed_order(server)
    server.fail('stock.picking', 'button_validate')
    server.fail('stock.picking', 'action_assign')
    report = fulfillment.validate_pickings(order_id)

    assert server.methods().count(('stock.picking', 'button_validate')) == 2
    assert len(report.validated) == 1


def test_one_failed_picking_does_not_block_the_others(fulfillment, server):
    order_id = confirmed_order(server, pickings=2)
    server.fail('stock.picking', 'button_validate', times=2)
    report = fulfillment.validate_pickings(order_id)

    assert len(report.failed) == 1
    assert len(report.validated) == 1


def test_label_is_attached_to_order(fulfillment, server, customer):
    order_id = confirmed_order(server)
    attachment_id = fulfillment.attach_shipping_label(order_id, customer)
    attachment = server.records['ir.attachment'][attachment_id]

    assert attachment['name'] == f'ShippingLabel_{order_id}.pdf'
    assert attachment['res_model'] == 'sale.order'
    assert attachment['res_id'] == order_id
    assert attachment['mimetype'] == 'application/pdf'
    assert attachment['type'] == 'binary'
    assert base64.b64decode(attachment['datas']) == f'LABEL {order_id} TRK1700000000000 Jane Doe'.encode()


def test_each_label_call_creates_a_new_attachment(fulfillment, server, customer):
    order_id = confirmed_order(server)
    first = fulfillment.attach_shipping_label(order_id, customer)
    second = fulfillment.attach_shipping_label(order_id, customer)
    assert first != second


def test_recipient_and_address_helpers(customer):
    assert recipient_name(customer) == 'Jane Doe'
    assert recipient_name(CustomerInput(name='Shop Account')) == 'Shop Account'
    assert address_lines(customer) == ['12 Market Street', 'Springfield', 'IL', '62701', 'US']
    assert address_lines(CustomerInput(city='Paris')) == ['Paris']


def test_tracking_number_format():
    number = tracking_number()
    assert number.startswith('TRK')
    assert number[3:].isdigit()


def test_broken_response_still_reserves_and_retries(fulfillment, server):
    order_id = confirmed_order(server, pickings=2)
    server.fail('stock.picking', 'button_validate', exc=http.client.IncompleteRead(b''))
    report = fulfillment.validate_pickings(order_id)

    picking_methods = [m for model, m in server.methods() if model == 'stock.picking']
    assert picking_methods == ['search_read', 'button_validate', 'action_assign', 'button_validate',
                               'button_validate']
    assert len(report.validated) == 2
    assert all(p['state'] == 'done' for p in server.records['stock.picking'].values())


def test_unexpected_error_on_one_picking_does_not_stop_the_next(fulfillment, server, monkeypatch):
    order_id = confirmed_order(server, pickings=2)
    first, second = sorted(server.records['stock.picking'])
    calls = []
    original = fulfillment.client.call

    def call(model, method, ids, **kwargs):
        calls.append((method, ids))
        if ids == [first]:
            raise KeyError('unexpected')
        return original(model, method, ids, **kwargs)

    monkeypatch.setattr(fulfillment.client, 'call', call)
    report = fulfillment.validate_pickings(order_id)

    assert report.failed == [first]
    assert report.validated == [second]
    assert calls.count(('action_assign', [first])) == 1
    assert server.records['stock.picking'][second]['state'] == 'done'
