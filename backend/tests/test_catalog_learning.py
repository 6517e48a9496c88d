"""
Unit tests per l'apprendimento di clienti e voci di catalogo dagli ordini.
"""

import datetime

from oficina.schemas.catalog import CatalogItem
from oficina.schemas.work_order import OrderItem
from oficina.services.catalog_learning_service import learn_catalog_items, learn_client


class TestLearnClient:
    """Tests per learn_client."""

    def test_new_client(self):
        clients = learn_client([], "João Silva", "Gol", "abc1234", "1111", "")
        assert len(clients) == 1
        assert clients[0].name == "João Silva"
        assert clients[0].vehicles[0].plate == "ABC1234"

    def test_twice_same_vehicle_is_idempotent(self):
        """Test stesso nome e stessa targa: un cliente con un solo veicolo."""
        clients = learn_client([], "João Silva", "Gol", "ABC1234", "1111", "")
        clients = learn_client(clients, "joão silva", "Gol", "ABC1234", "", "")
        assert len(clients) == 1
        assert len(clients[0].vehicles) == 1

    def test_empty_fields_never_blank_existing(self):
        clients = learn_client([], "Maria", phone="2222", notes="Cliente antiga")
        clients = learn_client(clients, "MARIA", phone="", notes="")
        assert clients[0].phone == "2222"
        assert clients[0].notes == "Cliente antiga"

    def test_non_empty_fields_overwrite(self):
        clients = learn_client([], "Maria", phone="2222")
        clients = learn_client(clients, "Maria", phone="3333")
        assert clients[0].phone == "3333"

    def test_new_vehicle_appended(self):
        clients = learn_client([], "Maria", "Gol", "AAA1111")
        clients = learn_client(clients, "Maria", "Uno", "BBB2222")
        assert [v.label for v in clients[0].vehicles] == ["Gol - AAA1111", "Uno - BBB2222"]

    def test_no_vehicle_data(self):
        clients = learn_client([], "Maria")
        assert clients[0].vehicles == []

    def test_blank_name_ignored(self):
        assert learn_client([], "   ", "Gol", "AAA1111") == []

    def test_unchanged_returns_same_list(self):
        visit = datetime.datetime(2025, 3, 15, 10, 0, tzinfo=datetime.timezone.utc)
        clients = learn_client([], "Maria", "Gol", "AAA1111", "2222", now=visit)
        assert learn_client(clients, "Maria", "Gol", "AAA1111", "2222", now=visit) is clients

    def test_last_visit_stamped_on_create_and_merge(self):
        first = datetime.datetime(2025, 3, 15, 10, 0, tzinfo=datetime.timezone.utc)
        second = datetime.datetime(2025, 4, 2, 9, 30, tzinfo=datetime.timezone.utc)

        clients = learn_client([], "Maria", "Gol", "AAA1111", now=first)
        assert clients[0].last_visit == first

        clients = learn_client(clients, "maria", "Gol", "AAA1111", now=second)
        assert len(clients) == 1
        assert clients[0].last_visit == second


class TestLearnCatalogItems:
    """Tests per learn_catalog_items."""

    def test_appends_unknown_descriptions(self):
        catalog = [CatalogItem(description="Filtro", price=3000)]
        items = [OrderItem(description="Vela", price=2000), OrderItem(description="Filtro", price=1)]
        result = learn_catalog_items(catalog, items)
        assert [i.description for i in result] == ["Filtro", "Vela"]

    def test_existing_price_never_overwritten(self):
        catalog = [CatalogItem(description="Filtro", price=3000)]
        result = learn_catalog_items(catalog, [OrderItem(description="FILTRO", price=9999)])
        assert result is catalog
        assert result[0].price == 3000

    def test_duplicates_within_batch(self):
        items = [OrderItem(description="Vela", price=2000), OrderItem(description="vela", price=2500)]
        result = learn_catalog_items([], items)
        assert len(result) == 1
        assert result[0].price == 2000
