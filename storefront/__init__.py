"""Jewelry storefront order service backed by Odoo."""

__version__ = "0.3.0"
