"""
Tests for synthetic product prices and price history
"""
import random
from datetime import date

import pytest

from toolhub.services import prices


class TestPriceGeneration:
    """Test price ranges and rounding"""

    def test_range_lookup(self):
        assert prices.price_range_for("iPhone 15", "Smartphone") == prices.PRODUCT_PRICE_RANGES["smartphone"]
        assert prices.price_range_for("wireless mouse", "Electronics") == prices.PRODUCT_PRICE_RANGES["mouse"]
        assert prices.price_range_for("gizmo", "Other") == prices.PRODUCT_PRICE_RANGES["default"]

    def test_realistic_price_stays_near_base(self):
        rng = random.Random(42)
        for _ in range(50):
            price = prices.generate_realistic_price("iPhone 15", "Smartphone", rng)
            assert 680 <= price <= 920
            assert price % 10 == 0

    def test_cheap_items_round_to_five(self):
        rng = random.Random(3)
        for _ in range(50):
            price = prices.generate_realistic_price("wireless mouse", "Electronics", rng)
            assert price % 5 == 0
            assert 40 <= price <= 60

    def test_price_sources(self):
        sources = prices.generate_price_sources("laptop", "Laptop", 8, random.Random(1))
        assert len(sources) == 8
        assert [s["price"] for s in sources] == sorted(s["price"] for s in sources)
        assert len({s["name"] for s in sources}) == 8
        for source in sources:
            assert 40 <= source["price"] <= 600
            assert 3.5 <= source["rating"] <= 5.0
            assert 50 <= source["reviewCount"] <= 5049


class TestProductInfo:
    """Test brand and category detection and the product summary"""

    @pytest.mark.parametrize(
        "name,brand,category",
        [
            ("Apple iPhone 15", "Apple", "Smartphone"),
            ("Galaxy S24", "Samsung", "Smartphone"),
            ("PS5 console", "Sony", "Gaming Console"),
            ("Sony Bravia TV", "Sony", "TV"),
            ("mystery gadget", "Unknown", "Electronics"),
        ],
    )
    def test_detection(self, name, brand, category):
        assert prices.detect_brand(name) == brand
        assert prices.detect_category(name) == category

    def test_product_summary(self):
        info = prices.get_product_info_and_prices("MacBook Air", random.Random(5))
        assert info["brand"] == "Apple"
        assert info["category"] == "Laptop"
        assert 4 <= len(info["specifications"]) <= 6
        assert len(info["prices"]) == 12
        in_stock = [p["price"] for p in info["prices"] if p["inStock"]]
        assert info["lowestPrice"] == min(in_stock)
        assert info["highestPrice"] == max(in_stock)
        assert info["lowestPrice"] <= info["averagePrice"] <= info["highestPrice"]


class TestPriceHistory:
    """Test history generation and chart labels"""

    def test_history_dates_oldest_first(self):
        history = prices.generate_price_history(5, 100, random.Random(2), today=date(2024, 3, 10))
        assert [item["date"] for item in history] == [
            "2024-03-06",
            "2024-03-07",
            "2024-03-08",
            "2024-03-09",
            "2024-03-10",
        ]
        assert all(isinstance(item["price"], int) for item in history)
        assert 90 <= history[-1]["price"] <= 110

    @pytest.mark.parametrize(
        "day,label",
        [
            (date(2024, 3, 10), "Today"),
            (date(2024, 3, 9), "Yesterday"),
            (date(2024, 2, 29), "Feb 29"),
            (date(2024, 1, 10), "Jan 24"),
        ],
    )
    def test_date_label(self, day, label):
        assert prices.date_label(day, today=date(2024, 3, 10)) == label


class TestPriceTrackerRoute:
    """Test the price tracker endpoint"""

    def test_returns_product_and_history(self, client):
        response = client.post("/api/price-tracker", json={"productName": "AirPods Pro", "timeRange": "30"})
        body = response.get_json()
        assert response.status_code == 200
        assert body["product"]["brand"] == "Apple"
        assert len(body["priceHistory"]) == 30
        assert body["dateLabels"][-1] == "Today"
        assert body["timeRange"] == 30

    @pytest.mark.parametrize("payload", [{}, {"productName": 42}, {"productName": "x", "timeRange": "0"}])
    def test_validation(self, client, payload):
        assert client.post("/api/price-tracker", json=payload).status_code == 400
