import http.client
import xmlrpc.client
import logging
from typing import Any, Callable, Dict, List, Optional
from xml.parsers.expat import ExpatError

from storefront.backend.errors import AuthenticationError, RemoteError, TransportError
from storefront.backend.session import CachedSessionProvider, SessionHandle, SessionProvider

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TimeoutTransport(xmlrpc.client.Transport):
    """Plain HTTP transport with a socket timeout"""

    def __init__(self, timeout: float, **kwargs):
        super().__init__(**kwargs)
        self.timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self.timeout
        return conn


class TimeoutSafeTransport(xmlrpc.client.SafeTransport):
    """HTTPS transport with a socket timeout"""

    def __init__(self, timeout: float, **kwargs):
        super().__init__(**kwargs)
        self.timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self.timeout
        return conn


def default_proxy_factory(uri: str, timeout: float):
    transport_cls = TimeoutSafeTransport if uri.startswith('https') else TimeoutTransport
    return xmlrpc.client.ServerProxy(uri, transport=transport_cls(timeout), allow_none=True)


def fault_message(fault: xmlrpc.client.Fault) -> str:
    """
    Odoo puts the whole server traceback in faultString; the user-facing
    message is its last non-empty line.
    """
    text = str(fault.faultString or '').strip()
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else f"Odoo fault {fault.faultCode}"


def normalize_id(result: Any) -> int:
    """create() answers either an id or a one-element id list depending on the call shape"""
    if isinstance(result, bool):
        raise RemoteError(f"Unexpected create result: {result!r}")
    if isinstance(result, int):
        return result
    if isinstance(result, (list, tuple)) and result and isinstance(result[0], int):
        return result[0]
    raise RemoteError(f"Unexpected create result: {result!r}")


def normalize_ids(result: Any) -> List[int]:
    """Methods returning recordsets come back as an id, an id list or False"""
    if not result:
        return []
    if isinstance(result, int) and not isinstance(result, bool):
        return [result]
    if isinstance(result, (list, tuple)):
        return [int(r) for r in result]
    raise RemoteError(f"Unexpected id list: {result!r}")


class OdooClient:
    """
    Thin XML-RPC gateway to Odoo: authenticate plus generic execute_kw.

    The session comes from a SessionProvider; by default the uid is cached
    after the first login and reused for every later call.
    """

    def __init__(self, url: str, db: str, username: str, api_key: str,
                 timeout: float = 30.0,
                 session_provider: Optional[SessionProvider] = None,
                 session_ttl_seconds: Optional[float] = None,
                 proxy_factory: Callable[[str, float], Any] = default_proxy_factory):
        self.url = url.rstrip('/')
        self.db = db
        self.username = username
        self.api_key = api_key
        self.timeout = timeout
        self._proxy_factory = proxy_factory
        self.common = proxy_factory(f'{self.url}/xmlrpc/2/common', timeout)
        self.models = proxy_factory(f'{self.url}/xmlrpc/2/object', timeout)
        self.session_provider = session_provider or CachedSessionProvider(self._login, session_ttl_seconds)

    @classmethod
    def from_config(cls, config, **kwargs) -> 'OdooClient':
        return cls(config.url, config.db, config.username, config.api_key,
                   timeout=config.timeout, session_ttl_seconds=config.session_ttl_seconds, **kwargs)

    def _rpc(self, description: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except xmlrpc.client.Fault as e:
            message = fault_message(e)
            logger.error(f"Odoo error during {description}: {message}")
            raise RemoteError(message) from e
        except (xmlrpc.client.Error, http.client.HTTPException, ExpatError, OSError) as e:
            # Anything below the Odoo fault level: HTTP, XML parsing or socket
            logger.error(f"Transport error during {description}: {e}")
            raise TransportError(f"Odoo unreachable at {self.url}: {e}") from e

    def _login(self) -> SessionHandle:
        logger.info(f"Authenticating with Odoo {self.url} (db={self.db}, user={self.username})")
        uid = self._rpc('authenticate',
                        lambda: self.common.authenticate(self.db, self.username, self.api_key, {}))
        if not uid:
            logger.error("Authentication failed")
            raise AuthenticationError("Failed to authenticate with Odoo")

        logger.info(f"Successfully connected to Odoo: {self.url} (User ID: {uid})")
        return SessionHandle(uid=uid, db=self.db)

    def authenticate(self) -> SessionHandle:
        return self.session_provider.get()

    def execute_kw(self, model: str, method: str, args: Optional[List[Any]] = None,
                   kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Call a model method, logging in first when no session is cached"""
        session = self.authenticate()
        return self._rpc(
            f'{model}.{method}',
            lambda: self.models.execute_kw(
                self.db, session.uid, self.api_key,
                model, method,
                args or [],
                kwargs or {}
            )
        )

    def search_read(self, model: str, domain: List[Any], fields: List[str],
                    limit: Optional[int] = None, offset: int = 0,
                    order: Optional[str] = None) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {'fields': fields}
        if limit:
            kwargs['limit'] = limit
        if offset:
            kwargs['offset'] = offset
        if order:
            kwargs['order'] = order
        return self.execute_kw(model, 'search_read', [domain], kwargs) or []

    def create(self, model: str, values: Dict[str, Any]) -> int:
        """Create one record and return its id"""
        return normalize_id(self.execute_kw(model, 'create', [values]))

    def call(self, model: str, method: str, ids: List[int], **kwargs) -> Any:
        """Invoke a button/action method on a set of records"""
        return self.execute_kw(model, method, [ids], kwargs or None)
