"""Selection of the author store backing the service."""

import logging

from .config import Settings
from .memory_store import InMemoryStore
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings):
    """Supabase when configured, otherwise the in-memory demo dataset."""
    supabase_url = settings.get("SUPABASE_URL", "supabase_url")
    service_role_key = settings.get("SUPABASE_SERVICE_ROLE_KEY", "supabase_service_role_key")
    if settings.get_bool("DEMO_MODE", "demo_mode"):
        logger.info("DEMO_MODE enabled, using in-memory author store")
        return InMemoryStore.with_demo_data()
    if not supabase_url or not service_role_key:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not configured, using in-memory demo store")
        return InMemoryStore.with_demo_data()
    return SupabaseStore(supabase_url, service_role_key)
