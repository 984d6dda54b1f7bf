from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.freshness.repositories import FreshnessBatchDjangoRepository
from modules.freshness.services import FreshnessService
from modules.inventory.constants import FlowerColor, FlowerType, MaterialType
from modules.inventory.dtos import CreateFlowerDTO, CreateMaterialDTO
from modules.inventory.repositories import StockItemDjangoRepository
from modules.inventory.services import InventoryService
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService

TODAY = date(2026, 3, 2)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def today():
    """Fixed business date; services take it explicitly."""
    return TODAY


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client(django_user_model):
    client = APIClient()
    user = django_user_model.objects.create_user(
        username="florist", password="testpass123"
    )
    client.force_authenticate(user=user)
    return client


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def inventory_service():
    return InventoryService(repository=StockItemDjangoRepository())


@pytest.fixture()
def freshness_service():
    return FreshnessService(
        batch_repository=FreshnessBatchDjangoRepository(),
        stock_repository=StockItemDjangoRepository(),
    )


@pytest.fixture()
def order_service(inventory_service):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        inventory_service=inventory_service,
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_flower(inventory_service):
    def _make(sku="ROSE-RED", current_stock=10, **overrides):
        fields = {
            "sku": sku,
            "name": "Red rose",
            "type": FlowerType.ROSE,
            "color": FlowerColor.RED,
            "unit_price": Decimal("150.00"),
            "purchase_price": Decimal("70.00"),
            "current_stock": current_stock,
            "min_stock_level": 5,
            "freshness_days": 7,
            "delivery_date": TODAY,
        }
        fields.update(overrides)
        return inventory_service.create_flower(CreateFlowerDTO(**fields))

    return _make


@pytest.fixture()
def make_material(inventory_service):
    def _make(sku="RIBBON-RED", current_stock=Decimal("10.000"), **overrides):
        fields = {
            "sku": sku,
            "name": "Red satin ribbon",
            "type": MaterialType.RIBBON,
            "unit_price": Decimal("40.00"),
            "purchase_price": Decimal("12.50"),
            "current_stock": current_stock,
            "min_stock_level": Decimal("2.000"),
        }
        fields.update(overrides)
        return inventory_service.create_material(CreateMaterialDTO(**fields))

    return _make


@pytest.fixture()
def flower(make_flower):
    return make_flower()


@pytest.fixture()
def material(make_material):
    return make_material()


@pytest.fixture()
def expiring_flower(make_flower):
    """A flower delivered long enough ago to expire on ``TODAY + 2``."""
    return make_flower(
        sku="TULIP-YEL",
        name="Yellow tulip",
        type=FlowerType.TULIP,
        color=FlowerColor.YELLOW,
        freshness_days=5,
        delivery_date=TODAY - timedelta(days=3),
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order(order_service, flower, material):
    """NEW order for 3 roses (450.00) and 0.5 m of ribbon (20.00)."""

    def _make(items=None, **overrides):
        fields = {
            "customer_name": "Anna Ivanova",
            "customer_phone": "+7 913 555-01-01",
            "customer_email": "anna@example.com",
            "delivery_address": "Lenina St. 1, Omsk",
            "items": items
            or [
                OrderItemDTO(stock_item_id=flower.id, quantity=Decimal("3")),
                OrderItemDTO(stock_item_id=material.id, quantity=Decimal("0.5")),
            ],
        }
        fields.update(overrides)
        return order_service.create_order(CreateOrderDTO(**fields), today=TODAY)

    return _make


@pytest.fixture()
def order(make_order):
    return make_order()
