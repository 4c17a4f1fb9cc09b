"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api packages, and wires the
repositories to an in-memory fake of the Supabase client.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fake_supabase import FakeSupabase  # noqa: E402
from repositories.client import StorageHandle  # noqa: E402
from repositories.item_repository import ItemRepository  # noqa: E402
from repositories.sale_repository import SaleRepository  # noqa: E402
from services.item_service import ItemService  # noqa: E402
from services.report_service import ReportService  # noqa: E402
from services.sale_service import SaleService  # noqa: E402


class FixedClock:
    """Callable clock a test can move."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def fake_client() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def storage(fake_client) -> StorageHandle:
    return StorageHandle.from_client(fake_client)


@pytest.fixture
def item_repo(storage) -> ItemRepository:
    return ItemRepository(storage)


@pytest.fixture
def sale_repo(storage) -> SaleRepository:
    return SaleRepository(storage, page_size=2)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 3, 14, 15, 9, 26, tzinfo=timezone.utc))


@pytest.fixture
def item_service(item_repo) -> ItemService:
    return ItemService(item_repo)


@pytest.fixture
def sale_service(item_repo, sale_repo, clock) -> SaleService:
    return SaleService(item_repo, sale_repo, clock=clock)


@pytest.fixture
def report_service(item_repo, sale_repo) -> ReportService:
    return ReportService(item_repo, sale_repo)
