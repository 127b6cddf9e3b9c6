import json

import pytest

from src.config.tenants import TenantRegistry
from src.core.errors import UnknownTenant


def test_default_registry_has_builtin_tenant():
    registry = TenantRegistry()
    assert "helpflow" in registry
    assert registry.get("helpflow").greeting.startswith("Hi! This is HelpFlow AI")


def test_file_overrides_and_extends(tmp_path):
    path = tmp_path / "tenants.json"
    path.write_text(json.dumps({
        "helpflow": {
            "name": "HelpFlow AI",
            "bot_name": "Flo",
            "greeting": "Hey, Flo here.",
            "system_prompt": "Be brief.",
        },
        "acme": {
            "tenant_id": "ignored",
            "name": "Acme Dental",
            "bot_name": "Acme Assistant",
            "greeting": "Hello, Acme Dental.",
            "system_prompt": "You are the receptionist for Acme Dental.",
            "top_k": 5,
        },
    }), encoding="utf-8")

    registry = TenantRegistry.from_file(str(path))

    assert registry.get("helpflow").bot_name == "Flo"
    acme = registry.get("acme")
    assert acme.tenant_id == "acme"
    assert acme.top_k == 5
    assert acme.temperature == 0.6


def test_unknown_tenant_raises():
    with pytest.raises(UnknownTenant) as exc_info:
        TenantRegistry().get("globex")
    assert exc_info.value.tenant_id == "globex"
