import json
import logging
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel

from src.config.settings import settings
from src.core.errors import UnknownTenant

logger = logging.getLogger(__name__)


class TenantConfig(BaseModel):
    """Per-client receptionist settings"""
    tenant_id: str
    name: str
    bot_name: str
    greeting: str
    fallback: str = "Sorry, I didn't catch that. Could you repeat?"
    system_prompt: str
    voice_id: Optional[str] = None
    model: str = settings.CHAT_MODEL
    temperature: float = 0.6
    max_tokens: int = 80
    top_k: int = settings.DEFAULT_TOP_K


DEFAULT_TENANTS = {
    "helpflow": TenantConfig(
        tenant_id="helpflow",
        name="HelpFlow AI",
        bot_name="HelpFlow AI",
        voice_id="UgBBYS2sOqTuMpoF3BR0",
        greeting="Hi! This is HelpFlow AI. How can I help you today?",
        system_prompt=(
            "You are a friendly, concise phone receptionist for HelpFlow AI. "
            "Answer clearly, briefly, and helpfully. If the caller asks about pricing, "
            "explain that plans start at $499 per month and ask if they'd like more details."
        ),
    ),
}


class TenantRegistry:
    def __init__(self, tenants: Dict[str, TenantConfig] = None):
        self.tenants = dict(tenants if tenants is not None else DEFAULT_TENANTS)

    @classmethod
    def from_file(cls, path: str) -> "TenantRegistry":
        """Built-in tenants, overridden or extended by a JSON file of {tenant_id: {...}}"""
        registry = cls()
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        for tenant_id, fields in raw.items():
            registry.tenants[tenant_id] = TenantConfig(**{**fields, "tenant_id": tenant_id})
        logger.info(f"Loaded {len(raw)} tenant(s) from {path}")
        return registry

    def get(self, tenant_id: str) -> TenantConfig:
        try:
            return self.tenants[tenant_id]
        except KeyError:
            raise UnknownTenant(tenant_id)

    def __contains__(self, tenant_id: str) -> bool:
        return tenant_id in self.tenants


def load_tenant_registry() -> TenantRegistry:
    if settings.TENANTS_CONFIG_PATH:
        return TenantRegistry.from_file(settings.TENANTS_CONFIG_PATH)
    return TenantRegistry()
