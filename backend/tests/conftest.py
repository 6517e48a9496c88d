"""
Pytest configuration and fixtures per Oficina OS.

Le fixture costruiscono stato, dispatcher e servizi reali su dati in
memoria; lo storage usa la cartella temporanea di pytest e il mirror
remoto un database SQLite in memoria (aiosqlite).
"""

import datetime

import pytest

from oficina.core.config import Settings
from oficina.core.database import RemoteDatabase
from oficina.core.decision import DecisionKind, PresetDecisions
from oficina.core.state import AppState
from oficina.schemas.ledger import LedgerEntry, TransactionType
from oficina.schemas.work_order import (
    OrderItem,
    OrderItemInput,
    WorkOrder,
    WorkOrderCreate,
    WorkOrderStatus,
)
from oficina.services.dispatcher import CommandDispatcher
from oficina.services.ledger_service import LedgerService
from oficina.services.status_engine import StatusTransitionEngine
from oficina.services.storage_service import LocalFileStorage


# ============================================================
# Dati di base
# ============================================================


@pytest.fixture
def march_15():
    return datetime.datetime(2025, 3, 15, 10, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def make_order(march_15):
    """Factory di ordini persistiti con voci opzionali."""

    def _make(
        os_number: int = 1,
        status: WorkOrderStatus = WorkOrderStatus.ORCAMENTO,
        client_name: str = "João Silva",
        parts: tuple = (),
        services: tuple = (),
        **kwargs,
    ) -> WorkOrder:
        return WorkOrder(
            os_number=os_number,
            status=status,
            client_name=client_name,
            client_phone=kwargs.pop("client_phone", "11 99999-0000"),
            vehicle=kwargs.pop("vehicle", "Gol - ABC1234"),
            parts=[OrderItem(description=d, price=p) for d, p in parts],
            services=[OrderItem(description=d, price=p) for d, p in services],
            created_at=kwargs.pop("created_at", march_15),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_order(make_order):
    """Ordine da R$ 150,00 (ricambio 100,00 + servizio 50,00)."""
    return make_order(parts=(("Filtro de óleo", 10000),), services=(("Troca de óleo", 5000),))


@pytest.fixture
def make_entry(march_15):
    def _make(
        description: str = "Aluguel",
        amount: int = 10000,
        type: TransactionType = TransactionType.DEBIT,
        effective_date: datetime.datetime = None,
        **kwargs,
    ) -> LedgerEntry:
        return LedgerService().create_entry(
            description, amount, type, effective_date or march_15, **kwargs,
        )

    return _make


@pytest.fixture
def order_form():
    """Factory di payload WorkOrderCreate."""

    def _make(**overrides) -> WorkOrderCreate:
        data = {
            "client_name": "João Silva",
            "client_phone": "11 99999-0000",
            "vehicle_model": "Gol",
            "vehicle_plate": "abc1234",
            "mileage": 54000,
            "parts": [OrderItemInput(description="Filtro de óleo", price=10000, cost=6000)],
            "services": [OrderItemInput(description="Troca de óleo", price=5000)],
        }
        data.update(overrides)
        return WorkOrderCreate(**data)

    return _make


# ============================================================
# Stato e dispatcher
# ============================================================


@pytest.fixture
def state():
    return AppState()


@pytest.fixture
def dispatcher(state):
    return CommandDispatcher(state)


@pytest.fixture
def engine():
    return StatusTransitionEngine(LedgerService())


@pytest.fixture
def accept_all():
    return PresetDecisions(default=True)


@pytest.fixture
def decline_all():
    return PresetDecisions(default=False)


@pytest.fixture
def post_revenue():
    return PresetDecisions({DecisionKind.POST_REVENUE: True})


# ============================================================
# Storage e remoto
# ============================================================


@pytest.fixture
def storage():
    return LocalFileStorage()


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "data" / "database.json")


@pytest.fixture
def settings(tmp_path, data_file):
    return Settings(
        app_env="testing",
        data_file=data_file,
        backup_path=str(tmp_path / "backups"),
        export_path=str(tmp_path / "exports"),
        autosave_debounce_seconds=0.05,
        load_grace_seconds=0,
        remote_database_url=None,
    )


@pytest.fixture
async def remote_db():
    database = RemoteDatabase("sqlite+aiosqlite:///:memory:")
    await database.create_tables()
    yield database
    await database.dispose()
