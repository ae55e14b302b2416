# products/tests/test_catalog_api.py

from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product


class CatalogApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.muffin = Product.objects.create(
            name="Blueberry Muffin",
            price=Decimal("80.00"),
            category="Muffins",
            stock_quantity=12,
        )
        self.tart = Product.objects.create(
            name="Lemon Tart",
            price=Decimal("150.00"),
            category="Tarts",
            stock_quantity=0,
        )

    def _names(self, response):
        body = response.json()
        rows = body["results"] if isinstance(body, dict) and "results" in body else body
        return [row["name"] for row in rows]

    def test_catalog_is_public(self):
        response = self.client.get("/api/products/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._names(response), ["Blueberry Muffin", "Lemon Tart"])

    def test_in_stock_filter_hides_sold_out(self):
        response = self.client.get("/api/products/", {"in_stock": "true"})

        self.assertEqual(self._names(response), ["Blueberry Muffin"])

    def test_search_by_name(self):
        response = self.client.get("/api/products/", {"q": "tart"})

        self.assertEqual(self._names(response), ["Lemon Tart"])

    def test_detail(self):
        response = self.client.get(f"/api/products/{self.muffin.id}/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["stock_quantity"], 12)

    def test_catalog_is_read_only(self):
        response = self.client.post("/api/products/", {"name": "Hack", "price": "1.00"}, format="json")

        self.assertEqual(response.status_code, 405)
