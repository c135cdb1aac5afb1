"""
Shared fixtures: stores, a recording notifier and navigator, a pipeline
bound to them, services for one owner, and valid form values.
"""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.mutation import MutationPipeline, RecordingNavigator, RecordingNotifier
from core.portfolio import PortfolioServices
from core.store.backend import InMemoryDocumentStore, reset_document_store
from core.store.objects import LocalObjectStore

OWNER_ID = "owner-1"


# =============================================================================
# Store Stubs
# =============================================================================


class DeferredDeliveryStore(InMemoryDocumentStore):
    """
    In-memory store that holds snapshots until ``flush()``.

    Lets tests observe the loading state between subscribe and the first
    snapshot, and count how many subscriptions were requested.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pending: list = []
        self.subscribe_calls = 0

    def subscribe(self, locator, on_snapshot, on_error=None):
        self.subscribe_calls += 1
        return super().subscribe(
            locator,
            lambda snapshot: self.pending.append((on_snapshot, snapshot)),
            on_error,
        )

    def flush(self) -> int:
        pending, self.pending = self.pending, []
        for callback, snapshot in pending:
            callback(snapshot)
        return len(pending)


class DenyingRules:
    """Access rules that refuse the listed operations."""

    def __init__(self, *operations: str):
        self.operations = set(operations)

    def __call__(self, path: str, operation: str) -> bool:
        return operation not in self.operations


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    """Fresh in-memory store for each test."""
    reset_document_store()
    return InMemoryDocumentStore()


@pytest.fixture
def deferred_store():
    return DeferredDeliveryStore()


@pytest.fixture
def objects(temp_dir):
    return LocalObjectStore(str(temp_dir / "objects"))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def access_errors():
    return []


@pytest.fixture
def pipeline(store, notifier, navigator, access_errors):
    return MutationPipeline(store, notifier, navigator, access_errors.append)


@pytest.fixture
def services(store, pipeline, objects):
    return PortfolioServices.build(store, pipeline, OWNER_ID, objects)


# =============================================================================
# Form Values
# =============================================================================


@pytest.fixture
def property_values():
    return {
        "address": {
            "nameOrNumber": "14",
            "street": "Mill Lane",
            "city": "Leeds",
            "county": "West Yorkshire",
            "postcode": "ls1 4ab",
        },
        "propertyType": "House",
        "bedrooms": 3,
        "bathrooms": 1,
        "notes": "",
    }


@pytest.fixture
def tenant_values():
    return {
        "name": "Priya Shah",
        "email": "Priya.Shah@Example.com",
        "telephone": "07123 456789",
        "monthlyRent": 950,
        "tenancyStartDate": "2026-01-01",
        "tenancyEndDate": "2026-12-31",
    }


@pytest.fixture
def contractor_values():
    return {
        "name": "Dan Hughes",
        "trade": "Plumber",
        "phone": "07123456789",
        "email": "",
    }


@pytest.fixture
def maintenance_values():
    return {
        "title": "Leaking kitchen tap",
        "description": "Drips constantly",
        "category": "Plumbing",
        "priority": "Routine",
        "reportedDate": "2026-02-10T09:30:00+00:00",
    }


@pytest.fixture
def created_property(services, property_values):
    """Id of an onboarded (Vacant) property."""
    result = services.properties.create(property_values)
    assert result.ok
    return result.ref.id
