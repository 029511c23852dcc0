import asyncio
from typing import Awaitable, Callable, Tuple, TypeVar

import structlog

from .api import PosApi
from .config import DEFAULT_TIMEOUT
from .domain import Company, Location, Product, User
from .errors import ServiceUnavailable

T = TypeVar("T")

logger = structlog.get_logger(__name__)


# ============ Асинхронный шлюз над блокирующим клиентом ============


class AsyncPosGateway:
    """
    Выполняет вызовы PosApi в рабочем потоке с дедлайном.
    Каждый вызов - отменяемая корутина; истёкший дедлайн превращается в ServiceUnavailable
    """

    def __init__(self, api: PosApi, timeout: float = DEFAULT_TIMEOUT):
        self.api = api
        self.timeout = timeout

    async def _call(self, name: str, fn: Callable[..., T], *args) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning("backend_timeout", call=name, timeout=self.timeout)
            raise ServiceUnavailable(f"{name} timed out after {self.timeout}s", e) from e

    async def login(self, username: str, password: str) -> User:
        return await self._call("login", self.api.login, username, password)

    async def companies(self) -> Tuple[Company, ...]:
        return await self._call("companies", self.api.companies)

    async def locations(self, company_id: str) -> Tuple[Location, ...]:
        return await self._call("locations", self.api.locations, company_id)

    async def products(self, location_id: str) -> Tuple[Product, ...]:
        return await self._call("products", self.api.products, location_id)


def gateway_from_settings(settings) -> AsyncPosGateway:
    return AsyncPosGateway(PosApi(settings.api_url, settings.timeout), settings.timeout)


# ============ Синхронная обёртка для UI ============


def run_sync(coro: Awaitable[T]) -> T:
    """Синхронная обёртка для вызова без event loop (streamlit)"""
    return asyncio.run(coro)
