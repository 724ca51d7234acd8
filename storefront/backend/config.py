import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[2] / 'config' / 'settings.yaml'


class OdooConfig(BaseModel):
    url: str
    db: str
    username: str
    api_key: str
    timeout: float = 30.0
    session_ttl_seconds: Optional[float] = None


class SmtpConfig(BaseModel):
    host: str
    port: int = 587
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    mail_from: str = 'no-reply@example.com'
    timeout: float = 30.0


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML settings. A missing file means defaults everywhere."""
    settings_path = Path(path or os.getenv('STOREFRONT_SETTINGS') or DEFAULT_SETTINGS_PATH)
    try:
        with open(settings_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Settings file not found at {settings_path}, using defaults")
        return {}


def odoo_config_from_env(settings: Dict[str, Any]) -> OdooConfig:
    """
    Build the Odoo connection config.

    Credentials always come from the environment; URL and database fall back
    to the 'odoo' section of settings.yaml.
    """
    load_dotenv()
    odoo_settings = settings.get('odoo', {})
    return OdooConfig(
        url=os.getenv('ODOO_URL', odoo_settings.get('default_url', 'http://localhost:8069')),
        db=os.getenv('ODOO_DB', odoo_settings.get('default_db', '')),
        username=os.getenv('ODOO_USERNAME', odoo_settings.get('default_user', 'admin')),
        api_key=os.getenv('ODOO_API_KEY', ''),
        timeout=odoo_settings.get('timeout_seconds', 30.0),
        session_ttl_seconds=odoo_settings.get('session_ttl_seconds'),
    )


def smtp_config_from_env() -> Optional[SmtpConfig]:
    """Returns None when SMTP_HOST is not set, which disables outbound mail"""
    load_dotenv()
    host = os.getenv('SMTP_HOST')
    if not host:
        return None

    return SmtpConfig(
        host=host,
        port=int(os.getenv('SMTP_PORT', '587')),
        use_tls=bool(os.getenv('SMTP_SECURE')),
        username=os.getenv('SMTP_USER') or None,
        password=os.getenv('SMTP_PASS') or None,
        mail_from=os.getenv('MAIL_FROM', 'no-reply@example.com'),
    )


def products_file_from_env(settings: Dict[str, Any]) -> Path:
    load_dotenv()
    default = settings.get('catalog', {}).get('products_file', 'data/products.json')
    return Path(os.getenv('PRODUCTS_FILE', default))
