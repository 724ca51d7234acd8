from pydantic import BaseModel, Field, AliasChoices, field_validator
from typing import Any, Dict, List, Optional, Literal
from decimal import Decimal


def odoo_values(model: BaseModel) -> Dict[str, Any]:
    """Dump a schema for XML-RPC: None becomes False, Decimal becomes float"""
    values = {}
    for key, value in model.model_dump().items():
        if value is None:
            value = False
        elif isinstance(value, Decimal):
            value = float(value)
        values[key] = value
    return values


# ---------------------------------------------------------------------------
# Storefront payloads
# ---------------------------------------------------------------------------

class CartItem(BaseModel):
    """One cart line as sent by the storefront"""
    name: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, validation_alias=AliasChoices('unitPrice', 'price', 'unit_price'))


class CustomerInput(BaseModel):
    """Checkout form data; only used to find or create the Odoo partner"""
    email: Optional[str] = None
    first_name: str = Field('', alias="firstName")
    last_name: str = Field('', alias="lastName")
    name: Optional[str] = None  # Display name fallback
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    country: Optional[str] = None

    class Config:
        populate_by_name = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()


class OrderRequest(BaseModel):
    """Body of POST /api/orders/from-cart. Emptiness is checked by the workflow."""
    customer: Optional[CustomerInput] = None
    items: List[CartItem] = []
    shipping: Decimal = Field(Decimal('0'), ge=0)
    note: Optional[str] = None


class OrderResult(BaseModel):
    order_id: int = Field(alias="orderId")
    invoice_id: Optional[int] = Field(None, alias="invoiceId")
    label_attachment_id: Optional[int] = Field(None, alias="labelAttachmentId")

    class Config:
        populate_by_name = True


class ResolvedLine(BaseModel):
    """Cart line after product resolution, ready to become an order line"""
    variant_id: Optional[int] = None
    name: str
    quantity: int
    unit_price: Decimal


class StatusUpdate(BaseModel):
    status: Literal['pending', 'processing', 'delivered', 'cancelled']


class EmailRequest(BaseModel):
    to: str
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None


class ExecuteKwRequest(BaseModel):
    """Body of POST /api/odoo/execute_kw; model and method are checked by the endpoint"""
    model: Optional[str] = None
    method: Optional[str] = None
    args: List[Any] = []
    kwargs: Dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Odoo record values
# ---------------------------------------------------------------------------

class PartnerValues(BaseModel):
    """res.partner create values"""
    name: str
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    customer_rank: int = 1


class ProductTemplateValues(BaseModel):
    """product.template create values"""
    name: str
    list_price: Decimal
    type: str = 'consu'
    sale_ok: bool = True
    purchase_ok: bool = True


class OrderLineValues(BaseModel):
    """sale.order.line values, embedded in a (0, 0, vals) command"""
    product_id: Optional[int] = None
    name: str
    product_uom_qty: float
    price_unit: Decimal


class SalesOrderValues(BaseModel):
    """sale.order create values"""
    partner_id: int
    order_line: List[OrderLineValues]
    note: str = ''

    def to_odoo(self) -> Dict[str, Any]:
        return {
            'partner_id': self.partner_id,
            'order_line': [[0, 0, odoo_values(line)] for line in self.order_line],
            'note': self.note,
        }


class PickingRecord(BaseModel):
    """stock.picking as returned by search_read"""
    id: int
    state: str
    name: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def empty_as_none(cls, value):
        # Odoo reports unset fields as False
        return None if value is False else value


class AttachmentValues(BaseModel):
    """ir.attachment create values for a binary document"""
    name: str
    type: str = 'binary'
    datas: str  # base64
    res_model: str
    res_id: int
    mimetype: str = 'application/pdf'


class OrderSummary(BaseModel):
    """Admin view of a sale.order"""
    id: str  # Odoo reference, e.g. S00042
    odoo_id: int = Field(alias="odooId")
    status: str
    customer_id: Optional[int] = Field(None, alias="customerId")
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_email: str = Field('', alias="customerEmail")
    total: float = 0
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True


# ---------------------------------------------------------------------------
# Local catalog
# ---------------------------------------------------------------------------

class CatalogProduct(BaseModel):
    """Product record stored in the local products.json file"""
    id: Optional[int] = None
    name: str = ''
    description: str = ''
    price: float = 0
    original_price: Optional[float] = Field(None, alias="originalPrice")
    category: str = 'Other'
    image: str = ''
    images: List[str] = []
    features: List[str] = []
    in_stock: bool = Field(True, alias="inStock")
    stock: Optional[int] = None
    rating: float = 0
    reviews: int = 0
    featured: bool = False

    class Config:
        populate_by_name = True
