import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List

from storefront.backend.errors import ProductNotFound
from storefront.models.schemas import CatalogProduct

logger = logging.getLogger(__name__)


def normalize_product(data: Dict[str, Any]) -> CatalogProduct:
    """Fill storefront defaults; explicit nulls count as missing"""
    cleaned = {k: v for k, v in data.items() if v is not None and k != 'id'}
    product = CatalogProduct(**cleaned)
    if not product.images:
        product.images = [product.image]
    return product


class ProductCatalog:
    """
    Product records in a local JSON array file.

    Every operation is a full read-modify-write; writes are serialized with a
    lock so concurrent requests in this process do not lose updates.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        if not isinstance(data, list):
            raise ValueError(f"{self.path.name} is not an array")
        return data

    def _write(self, products: List[Dict[str, Any]]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(products, f, indent=2)

    def list(self) -> List[Dict[str, Any]]:
        return self._read()

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            products = self._read()
            next_id = max((int(p.get('id') or 0) for p in products), default=0) + 1
            product = normalize_product(data)
            product.id = next_id
            record = product.model_dump(by_alias=True, exclude_none=True)
            products.append(record)
            self._write(products)
        logger.info(f"Added product {next_id} ({record['name']})")
        return record

    def update(self, product_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the provided fields into the stored record"""
        with self._lock:
            products = self._read()
            idx = next((i for i, p in enumerate(products) if int(p.get('id') or 0) == product_id), None)
            if idx is None:
                raise ProductNotFound(f"Product not found: {product_id}")

            merged = {**products[idx], **data}
            product = normalize_product(merged)
            product.id = product_id
            record = product.model_dump(by_alias=True, exclude_none=True)
            products[idx] = record
            self._write(products)
        return record

    def delete(self, product_id: int):
        with self._lock:
            products = self._read()
            remaining = [p for p in products if int(p.get('id') or 0) != product_id]
            if len(remaining) == len(products):
                raise ProductNotFound(f"Product not found: {product_id}")
            self._write(remaining)
        logger.info(f"Deleted product {product_id}")
