"""
In-memory stand-in for Odoo's XML-RPC endpoints.

Plugged into OdooClient through proxy_factory, so tests go through the real
gateway code (session caching, id normalization, fault mapping).
"""

import itertools
import xmlrpc.client
from collections import defaultdict


class FakeOdooServer:
    def __init__(self, uid=2, auto_variants=True, pickings_per_order=1, invoice_ids=None,
                 allow_private_methods=False):
        self.uid = uid
        # Stock Odoo refuses `_`-prefixed methods over RPC; tests opt in to model
        # a server where the invoicing method is reachable.
        self.allow_private_methods = allow_private_methods
        self.auto_variants = auto_variants
        self.pickings_per_order = pickings_per_order
        self.invoice_ids = invoice_ids  # None: create one invoice per order
        self.records = defaultdict(dict)
        self.calls = []  # (model, method, args, kwargs)
        self.auth_calls = 0
        self.failures = defaultdict(list)
        self._ids = itertools.count(1)

    # ---------- setup helpers ----------

    def fail(self, model, method, times=1, exc=None):
        """Make the next `times` calls of model.method raise"""
        for _ in range(times):
            self.failures[(model, method)].append(
                exc or xmlrpc.client.Fault(1, f"Traceback...\nodoo.exceptions.UserError: {method} refused")
            )

    def add(self, model, **values):
        record_id = next(self._ids)
        self.records[model][record_id] = dict(values, id=record_id)
        return record_id

    def proxy_factory(self, uri, timeout):
        return FakeEndpoint(self, 'common' if uri.endswith('/common') else 'object')

    def methods(self):
        return [(model, method) for model, method, _, _ in self.calls]

    def find(self, model, **conditions):
        return [r for r in self.records[model].values()
                if all(r.get(k) == v for k, v in conditions.items())]

    # ---------- endpoints ----------

    def authenticate(self, db, login, key, context):
        self.auth_calls += 1
        failures = self.failures.get(('common', 'authenticate'))
        if failures:
            raise failures.pop(0)
        return self.uid

    def execute_kw(self, db, uid, key, model, method, args, kwargs):
        self.calls.append((model, method, args, kwargs))
        failures = self.failures.get((model, method))
        if failures:
            raise failures.pop(0)

        if method.startswith('_') and not self.allow_private_methods:
            raise xmlrpc.client.Fault(
                4, f"Traceback...\nodoo.exceptions.AccessError: Private methods (such as {method}) "
                   f"cannot be called remotely.")

        handler = getattr(self, f'_{method.lstrip("_")}', None)
        if handler is None:
            raise xmlrpc.client.Fault(2, f"AttributeError: type object '{model}' has no attribute '{method}'")
        return handler(model, args, kwargs)

    # ---------- generic ORM ----------

    def _match(self, record, domain):
        return all(record.get(field) == value for field, op, value in domain if op == '=')

    def _search_read(self, model, args, kwargs):
        domain = args[0] if args else []
        rows = [r for r in self.records[model].values() if self._match(r, domain)]
        if kwargs.get('order') == 'id desc':
            rows.sort(key=lambda r: r['id'], reverse=True)
        offset = kwargs.get('offset', 0)
        rows = rows[offset:]
        if kwargs.get('limit'):
            rows = rows[:kwargs['limit']]
        fields = kwargs.get('fields')
        if fields:
            rows = [{f: r.get(f, False) for f in fields} | {'id': r['id']} for r in rows]
        return rows

    def _create(self, model, args, kwargs):
        values = args[0]
        if isinstance(values, list):
            return [self._create_one(model, v) for v in values]
        return self._create_one(model, values)

    def _create_one(self, model, values):
        values = dict(values)
        if model == 'sale.order':
            values.setdefault('state', 'draft')
            values['name'] = 'S%05d' % len(self.records[model])
        record_id = self.add(model, **values)
        if model == 'product.template' and self.auto_variants:
            self.add('product.product', product_tmpl_id=record_id, name=values.get('name'))
        return record_id

    # ---------- sale.order ----------

    def _action_confirm(self, model, args, kwargs):
        for order_id in args[0]:
            self.records['sale.order'][order_id]['state'] = 'sale'
            for _ in range(self.pickings_per_order):
                count = len(self.records['stock.picking']) + 1
                self.add('stock.picking', sale_id=order_id, state='confirmed', name='WH/OUT/%05d' % count)
        return True

    def _action_cancel(self, model, args, kwargs):
        for record_id in args[0]:
            self.records[model][record_id]['state'] = 'cancel'
        return True

    def _create_invoices(self, model, args, kwargs):
        if self.invoice_ids is not None:
            return self.invoice_ids
        return [self.add('account.move', invoice_origin=order_id, state='draft') for order_id in args[0]]

    # ---------- account.move / stock.picking ----------

    def _action_post(self, model, args, kwargs):
        for move_id in args[0]:
            self.records['account.move'][move_id]['state'] = 'posted'
        return True

    def _button_validate(self, model, args, kwargs):
        for picking_id in args[0]:
            self.records['stock.picking'][picking_id]['state'] = 'done'
        return True

    def _action_assign(self, model, args, kwargs):
        for picking_id in args[0]:
            self.records['stock.picking'][picking_id]['state'] = 'assigned'
        return True


class FakeEndpoint:
    def __init__(self, server, kind):
        self.server = server
        self.kind = kind

    def authenticate(self, *args):
        assert self.kind == 'common'
        return self.server.authenticate(*args)

    def execute_kw(self, db, uid, key, model, method, args, kwargs=None):
        assert self.kind == 'object'
        return self.server.execute_kw(db, uid, key, model, method, args, kwargs or {})
