"""Integration tests for Order read endpoints.

Covers:
- Retrieve by id and by order number (200 / 404).
- List: pagination envelope, filters, ordering, search.
- Work queues: requiring processing, ready for delivery, overdue, florist.
- Statistics report.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderItemDTO

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"
MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture()
def one_rose(flower):
    return [OrderItemDTO(stock_item_id=flower.id, quantity=Decimal("1"))]


def _walk(service, order, *statuses):
    for status in statuses:
        order = service.transition_order(order.id, status)
    return order


class TestRetrieve:
    def test_retrieve_returns_nested_order(self, auth_client, order):
        response = auth_client.get(f"{URL}{order.id}/")
        assert response.status_code == 200
        assert response.data["order_number"] == order.order_number
        assert len(response.data["items"]) == 2
        assert response.data["items"][1]["product_sku"] == "RIBBON-RED"
        assert len(response.data["status_history"]) == 1

    def test_retrieve_unknown_returns_404(self, auth_client):
        response = auth_client.get(f"{URL}{MISSING_ID}/")
        assert response.status_code == 404
        assert "not found" in response.data["detail"]

    def test_retrieve_by_number(self, auth_client, order):
        response = auth_client.get(f"{URL}by-number/{order.order_number}/")
        assert response.status_code == 200
        assert response.data["id"] == str(order.id)

    def test_retrieve_by_unknown_number_returns_404(self, auth_client):
        response = auth_client.get(f"{URL}by-number/LV-00000000-0000/")
        assert response.status_code == 404

    def test_deleted_order_is_gone(self, auth_client, order_service, order):
        order_service.delete_order(order.id)
        assert auth_client.get(f"{URL}{order.id}/").status_code == 404


class TestList:
    def test_list_is_paginated(self, auth_client, make_order, one_rose):
        for _ in range(3):
            make_order(items=one_rose)

        response = auth_client.get(URL, {"page_size": 2})

        assert response.status_code == 200
        assert response.data["count"] == 3
        assert len(response.data["results"]) == 2
        assert response.data["next"] is not None
        assert "items" not in response.data["results"][0]

    def test_filter_by_status(self, auth_client, order_service, make_order, one_rose):
        confirmed = _walk(order_service, make_order(items=one_rose), OrderStatus.CONFIRMED)
        make_order(items=one_rose)

        response = auth_client.get(URL, {"status": "confirmed"})

        assert [o["id"] for o in response.data["results"]] == [str(confirmed.id)]

    def test_filter_by_phone_and_florist(self, auth_client, make_order, one_rose):
        mine = make_order(
            items=one_rose, customer_phone="+7 913 555-99-99", assigned_florist_id=7
        )
        make_order(items=one_rose)

        by_phone = auth_client.get(URL, {"phone": "+7 913 555-99-99"})
        by_florist = auth_client.get(URL, {"florist": 7})

        assert [o["id"] for o in by_phone.data["results"]] == [str(mine.id)]
        assert [o["id"] for o in by_florist.data["results"]] == [str(mine.id)]

    def test_filter_by_total_range(self, auth_client, make_order, one_rose):
        make_order(items=one_rose)
        make_order()

        response = auth_client.get(URL, {"min_total": "200", "max_total": "500"})

        assert [o["final_amount"] for o in response.data["results"]] == ["470.00"]

    def test_ordering_by_final_amount(self, auth_client, make_order, one_rose):
        make_order()
        make_order(items=one_rose)

        response = auth_client.get(URL, {"ordering": "final_amount"})

        amounts = [o["final_amount"] for o in response.data["results"]]
        assert amounts == ["150.00", "470.00"]

    def test_search_by_customer_name(self, auth_client, make_order, one_rose):
        make_order(items=one_rose, customer_name="Boris Petrov")
        make_order(items=one_rose)

        response = auth_client.get(URL, {"search": "petrov"})

        assert [o["customer_name"] for o in response.data["results"]] == ["Boris Petrov"]


class TestQueues:
    def test_requiring_processing(self, auth_client, order_service, make_order, one_rose):
        first = make_order(items=one_rose)
        second = _walk(order_service, make_order(items=one_rose), OrderStatus.CONFIRMED)
        _walk(
            order_service,
            make_order(items=one_rose),
            OrderStatus.CONFIRMED,
            OrderStatus.IN_PROGRESS,
        )

        response = auth_client.get(f"{URL}requiring-processing/")

        assert response.status_code == 200
        assert [o["id"] for o in response.data] == [str(first.id), str(second.id)]

    def test_ready_for_delivery(self, auth_client, order_service, order):
        _walk(
            order_service,
            order,
            OrderStatus.CONFIRMED,
            OrderStatus.IN_PROGRESS,
            OrderStatus.READY,
        )
        response = auth_client.get(f"{URL}ready-for-delivery/")
        assert [o["id"] for o in response.data] == [str(order.id)]

    def test_overdue(self, auth_client, make_order, one_rose):
        late = make_order(
            items=one_rose, delivery_date=timezone.now() - timedelta(hours=2)
        )
        make_order(items=one_rose, delivery_date=timezone.now() + timedelta(days=1))

        response = auth_client.get(f"{URL}overdue/")

        assert [o["id"] for o in response.data] == [str(late.id)]

    def test_florist_queue_lists_active_orders(self, auth_client, order_service, order):
        order_service.assign_florist(order.id, 42)
        response = auth_client.get(f"{URL}florist/42/")
        assert [o["assigned_florist_id"] for o in response.data] == [42]


class TestStatistics:
    def test_statistics_report(self, auth_client, order_service, make_order, one_rose):
        make_order(items=one_rose)
        cancelled = make_order(items=one_rose)
        order_service.cancel_order(cancelled.id, reason="changed mind")

        response = auth_client.get(f"{URL}statistics/")

        assert response.status_code == 200
        data = response.data
        assert data["total_orders"] == 2
        assert data["cancelled_orders"] == 1
        assert data["total_revenue"] == "150.00"
        assert data["conversion_rate"] == "0.00"
        assert data["orders_by_status"] == {"New": 1, "Cancelled": 1}

    def test_statistics_period_excludes_older_orders(self, auth_client, make_order, one_rose):
        make_order(items=one_rose)
        start = (timezone.now() + timedelta(minutes=1)).isoformat()

        response = auth_client.get(f"{URL}statistics/", {"start": start})

        assert response.data["total_orders"] == 0
        assert response.data["average_order_value"] == "0.00"

    def test_statistics_rejects_bad_dates(self, auth_client):
        response = auth_client.get(f"{URL}statistics/", {"start": "yesterday"})
        assert response.status_code == 400
