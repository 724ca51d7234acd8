import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from dotenv import load_dotenv
from pydantic import ValidationError

from storefront import __version__
from storefront.backend.catalog_store import ProductCatalog
from storefront.backend.config import (
    load_settings,
    odoo_config_from_env,
    products_file_from_env,
    smtp_config_from_env,
)
from storefront.backend.errors import InvalidPayload, MailNotConfigured, ProductNotFound, StorefrontError
from storefront.backend.notifications import NotificationDispatcher
from storefront.backend.odoo_client import OdooClient
from storefront.backend.order_admin import OrderAdmin
from storefront.backend.order_workflow import OrderWorkflow
from storefront.models.schemas import (
    EmailRequest,
    ExecuteKwRequest,
    OrderRequest,
    OrderResult,
    OrderSummary,
    StatusUpdate,
)

load_dotenv()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Jewelry Storefront API", version=__version__)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

@lru_cache
def get_settings() -> Dict[str, Any]:
    return load_settings()


@lru_cache
def get_odoo_client() -> OdooClient:
    return OdooClient.from_config(odoo_config_from_env(get_settings()))


@lru_cache
def get_notifier() -> NotificationDispatcher:
    return NotificationDispatcher(smtp_config_from_env())


def get_workflow(client: OdooClient = Depends(get_odoo_client),
                 notifier: NotificationDispatcher = Depends(get_notifier)) -> OrderWorkflow:
    return OrderWorkflow.from_settings(client, get_settings(), notifier=notifier)


def get_order_admin(client: OdooClient = Depends(get_odoo_client)) -> OrderAdmin:
    return OrderAdmin(client)


@lru_cache
def get_catalog() -> ProductCatalog:
    return ProductCatalog(products_file_from_env(get_settings()))


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/", response_class=PlainTextResponse)
def root():
    return "Storefront backend is running. See GET /api/health"


@app.get("/api", response_class=PlainTextResponse)
def api_root():
    return "API root. See GET /api/health"


@app.get("/api/health")
def health():
    return {"ok": True, "odooUrl": odoo_config_from_env(get_settings()).url}


# ---------------------------------------------------------------------------
# Raw Odoo proxy
# ---------------------------------------------------------------------------

@app.post("/api/odoo/authenticate")
def odoo_authenticate(client: OdooClient = Depends(get_odoo_client)):
    try:
        session = client.authenticate()
    except StorefrontError as e:
        logger.error(f"Authentication failed: {e}")
        return error_response(500, str(e))
    # XML-RPC login yields only the uid; there is no user context to forward
    return {"uid": session.uid, "context": {}}


@app.post("/api/odoo/execute_kw")
def odoo_execute_kw(body: ExecuteKwRequest, client: OdooClient = Depends(get_odoo_client)):
    if not body.model or not body.method:
        return error_response(400, "model and method are required")
    try:
        result = client.execute_kw(body.model, body.method, body.args, body.kwargs)
    except StorefrontError as e:
        logger.error(f"execute_kw {body.model}.{body.method} failed: {e}")
        return error_response(500, str(e))
    return {"result": result}


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@app.post("/api/orders/from-cart", response_model=OrderResult)
def create_order_from_cart(body: OrderRequest, workflow: OrderWorkflow = Depends(get_workflow)):
    try:
        return workflow.submit(body.customer, body.items, body.shipping, body.note)
    except InvalidPayload as e:
        return error_response(400, e.reason)
    except StorefrontError as e:
        return error_response(500, str(e))
    except Exception as e:
        logger.exception("Order creation failed")
        return error_response(500, str(e))


@app.get("/api/orders", response_model=List[OrderSummary])
def list_orders(limit: int = Query(80, ge=1, le=500), offset: int = Query(0, ge=0),
                admin: OrderAdmin = Depends(get_order_admin)):
    try:
        return admin.list_orders(limit=limit, offset=offset)
    except StorefrontError as e:
        return error_response(500, str(e))


@app.get("/api/orders/by-name/{name}", response_model=OrderSummary)
def get_order_by_name(name: str, admin: OrderAdmin = Depends(get_order_admin)):
    try:
        order = admin.get_by_name(name)
    except StorefrontError as e:
        return error_response(500, str(e))
    if order is None:
        return error_response(404, "Order not found")
    return order


@app.get("/api/orders/export")
def export_orders(limit: int = Query(500, ge=1, le=5000), admin: OrderAdmin = Depends(get_order_admin)):
    try:
        content = admin.export_orders(admin.list_orders(limit=limit))
    except StorefrontError as e:
        return error_response(500, str(e))

    filename = f"orders_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.patch("/api/orders/{order_id}/status")
def update_order_status(order_id: int, body: StatusUpdate, admin: OrderAdmin = Depends(get_order_admin)):
    try:
        done = admin.update_status(order_id, body.status)
    except InvalidPayload as e:
        return error_response(400, e.reason)
    except StorefrontError as e:
        return error_response(500, str(e))
    return {"ok": done, "status": body.status}


# ---------------------------------------------------------------------------
# Local product catalog
# ---------------------------------------------------------------------------

@app.get("/api/products")
def list_products(catalog: ProductCatalog = Depends(get_catalog)):
    try:
        return catalog.list()
    except ValueError as e:
        return error_response(500, str(e))


@app.post("/api/products", status_code=201)
def create_product(body: Dict[str, Any] = Body(...),
                   catalog: ProductCatalog = Depends(get_catalog)):
    try:
        return catalog.create(body)
    except ValidationError as e:
        return error_response(400, str(e))
    except ValueError as e:
        return error_response(500, str(e))


@app.put("/api/products/{product_id}")
def update_product(product_id: int, body: Dict[str, Any] = Body(...),
                   catalog: ProductCatalog = Depends(get_catalog)):
    try:
        return catalog.update(product_id, body)
    except ProductNotFound:
        return error_response(404, "Product not found")
    except ValidationError as e:
        return error_response(400, str(e))
    except ValueError as e:
        return error_response(500, str(e))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: int, catalog: ProductCatalog = Depends(get_catalog)):
    try:
        catalog.delete(product_id)
    except ProductNotFound:
        return error_response(404, "Product not found")
    except ValueError as e:
        return error_response(500, str(e))
    return {"ok": True}


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------

@app.post("/api/email/send")
def send_email(body: EmailRequest, notifier: NotificationDispatcher = Depends(get_notifier)):
    try:
        message_id = notifier.send(body.to, body.subject, text=body.text, html=body.html)
    except MailNotConfigured as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"Email send failed: {e}")
        return error_response(500, str(e))
    return {"messageId": message_id}
