"""
Request-scoped wiring: build services from the storage handle on app.state.
"""

from fastapi import Request

from config import Settings
from repositories.client import StorageHandle
from repositories.item_repository import ItemRepository
from repositories.sale_repository import SaleRepository
from services.item_service import ItemService
from services.report_service import ReportService
from services.sale_service import SaleService


def get_storage(request: Request) -> StorageHandle:
    return request.app.state.storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_item_service(request: Request) -> ItemService:
    return ItemService(ItemRepository(get_storage(request)))


def get_sale_service(request: Request) -> SaleService:
    storage = get_storage(request)
    settings = get_settings(request)
    return SaleService(
        ItemRepository(storage),
        SaleRepository(storage, page_size=settings.ledger_page_size),
        max_attempts=settings.sale_max_attempts,
    )


def get_report_service(request: Request) -> ReportService:
    storage = get_storage(request)
    settings = get_settings(request)
    return ReportService(
        ItemRepository(storage),
        SaleRepository(storage, page_size=settings.ledger_page_size),
        timezone_name=settings.report_timezone,
    )
