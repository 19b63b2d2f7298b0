"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from orderflow.infrastructure.carrier.http_carrier import HttpShippingCarrier, SenderProfile
from orderflow.infrastructure.config import get_settings
from orderflow.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryStore,
)
from orderflow.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from orderflow.infrastructure.persistence.json_variant_repository import (
    JsonVariantRepository,
)


def variant_repository() -> JsonVariantRepository:
    return JsonVariantRepository(get_settings().DATA_DIR / "variants.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(get_settings().DATA_DIR / "orders.json")


def inventory_store() -> JsonInventoryStore:
    return JsonInventoryStore(get_settings().DATA_DIR / "inventory.json")


def shipping_carrier() -> HttpShippingCarrier | None:
    settings = get_settings()
    if not settings.CARRIER_BASE_URL:
        return None
    return HttpShippingCarrier(
        base_url=settings.CARRIER_BASE_URL,
        username=settings.CARRIER_USERNAME,
        password=settings.CARRIER_PASSWORD,
        token=settings.CARRIER_TOKEN,
        timeout=settings.CARRIER_TIMEOUT_SECONDS,
        sender=SenderProfile(
            name=settings.STORE_NAME,
            phone=settings.STORE_PHONE,
            address=settings.STORE_ADDRESS,
            ward_code=settings.STORE_WARD_CODE,
            district_code=settings.STORE_DISTRICT_CODE,
            province_code=settings.STORE_PROVINCE_CODE,
        ),
        service_code=settings.CARRIER_SERVICE_CODE,
    )


def order_number_prefix() -> str:
    return get_settings().ORDER_NUMBER_PREFIX


def carrier_webhook_token() -> str:
    return get_settings().CARRIER_WEBHOOK_TOKEN
