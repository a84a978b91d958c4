"""Settings resolved from the environment, then config/app_settings.json."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent
APP_CONFIG_PATH = ROOT_DIR / "config" / "app_settings.json"
LOG_DIR = ROOT_DIR / "logs"


def load_app_config(path: Path = APP_CONFIG_PATH) -> dict:
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning(f"Ignoring unreadable config file {path}: {exc}")
        return {}


class Settings:
    """Lookup of env vars with a JSON config file as fallback."""

    def __init__(self, app_config: Optional[dict] = None):
        self.app_config = load_app_config() if app_config is None else app_config

    def get(self, env_key: str, config_key: str, default=None):
        env_val = os.getenv(env_key)
        if env_val:
            return env_val
        return self.app_config.get(config_key, default)

    def get_bool(self, env_key: str, config_key: str, default: bool = False) -> bool:
        value = self.get(env_key, config_key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def get_int(self, env_key: str, config_key: str, default: int) -> int:
        try:
            return int(self.get(env_key, config_key, default))
        except (TypeError, ValueError):
            logger.warning(f"Invalid integer for {env_key}, using {default}")
            return default

    def get_list(self, env_key: str, config_key: str, default: List[str]) -> List[str]:
        value = self.get(env_key, config_key, default)
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",") if item.strip()]
        return value or default


class NetSuiteConfig:
    """NetSuite token-based-auth credentials and request settings."""

    REQUIRED_FIELDS = (
        "account_id",
        "consumer_key",
        "consumer_secret",
        "token_id",
        "token_secret",
        "realm",
    )

    def __init__(
        self,
        account_id: str = "",
        consumer_key: str = "",
        consumer_secret: str = "",
        token_id: str = "",
        token_secret: str = "",
        realm: str = "",
        signature_method: str = "HMAC-SHA256",
        page_size: int = 1000,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
    ):
        self.account_id = account_id or ""
        self.consumer_key = consumer_key or ""
        self.consumer_secret = consumer_secret or ""
        self.token_id = token_id or ""
        self.token_secret = token_secret or ""
        # NetSuite realm is the account id with "-" replaced by "_", upper-cased
        self.realm = realm or self.account_id.replace("-", "_").upper()
        self.signature_method = signature_method
        self.page_size = page_size
        self.timeout = timeout
        self.base_url = base_url or (
            f"https://{self.account_id.lower()}.suitetalk.api.netsuite.com" if self.account_id else ""
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "NetSuiteConfig":
        return cls(
            account_id=settings.get("NETSUITE_ACCOUNT_ID", "netsuite_account_id", ""),
            consumer_key=settings.get("NETSUITE_CONSUMER_KEY", "netsuite_consumer_key", ""),
            consumer_secret=settings.get("NETSUITE_CONSUMER_SECRET", "netsuite_consumer_secret", ""),
            token_id=settings.get("NETSUITE_TOKEN_ID", "netsuite_token_id", ""),
            token_secret=settings.get("NETSUITE_TOKEN_SECRET", "netsuite_token_secret", ""),
            realm=settings.get("NETSUITE_REALM", "netsuite_realm", ""),
            signature_method=settings.get("NETSUITE_SIGNATURE_METHOD", "netsuite_signature_method", "HMAC-SHA256"),
            page_size=settings.get_int("NETSUITE_PAGE_SIZE", "netsuite_page_size", 1000),
            timeout=float(settings.get_int("NETSUITE_TIMEOUT", "netsuite_timeout", 30)),
            base_url=settings.get("NETSUITE_BASE_URL", "netsuite_base_url"),
        )

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]
