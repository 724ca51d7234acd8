"""
Error taxonomy for the storefront backend.

Fatal workflow failures surface as OrderRejected; ERP failures are split into
transport problems (network, HTTP, timeouts) and errors reported by Odoo itself.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront errors"""


class TransportError(StorefrontError, ConnectionError):
    """The ERP could not be reached or the HTTP exchange failed"""


class RemoteError(StorefrontError):
    """Odoo answered with a fault (validation, access rights, bad request)"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(RemoteError):
    """Odoo rejected the configured credentials"""


class OrderRejected(StorefrontError):
    """The order workflow stopped before the sale order was confirmed"""

    def __init__(self, reason: str, state: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.state = state


class InvalidPayload(OrderRejected):
    """Request data is incomplete; raised before any remote call"""


class ProductNotFound(StorefrontError):
    """No product with the given id in the local catalog"""


class MailNotConfigured(StorefrontError):
    """SMTP settings are missing"""
