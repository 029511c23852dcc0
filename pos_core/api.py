"""Блокирующий HTTP-клиент бэкенда кассы.

Методы возвращают доменные значения или бросают подклассы PosError;
исключения requests наружу не выходят
"""

from typing import Any, Optional, Tuple

import requests
import structlog

from .config import DEFAULT_TIMEOUT
from .domain import Company, Location, Product, User
from .errors import InvalidCredentials, ServiceUnavailable
from .money import parse_price

logger = structlog.get_logger(__name__)

REJECTED_LOGIN_STATUSES = (400, 401, 403)


# ============ JSON -> доменные объекты ============


def _to_user(data: dict) -> User:
    return User(
        id=str(data["id"]),
        display_name=str(data.get("full_name") or data.get("display_name") or data["id"]),
    )


def _to_company(data: dict) -> Company:
    return Company(id=str(data["id"]), name=str(data["name"]))


def _to_location(data: dict) -> Location:
    return Location(
        id=str(data["id"]),
        name=str(data["name"]),
        address=str(data.get("address") or ""),
        city=str(data.get("city") or ""),
        company_id=str(data["company_id"]),
    )


def _to_product(data: dict) -> Product:
    sku = data.get("sku")
    return Product(
        id=str(data["id"]),
        name=str(data["name"]),
        unit_price=parse_price(data["price"]),
        sku=str(sku) if sku else None,
        category_tags=tuple(str(t) for t in data.get("category_tags") or data.get("tags") or ()),
    )


def _parse_list(payload: Any, to_value, what: str) -> tuple:
    if not isinstance(payload, list):
        raise ServiceUnavailable(f"expected a list of {what}, got {type(payload).__name__}")
    try:
        return tuple(map(to_value, payload))
    except (KeyError, TypeError, ValueError) as e:
        raise ServiceUnavailable(f"malformed {what} payload", e) from e


# ============ Клиент ============


class PosApi:
    """Тонкая обёртка над REST-эндпоинтами кассы"""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("backend_unreachable", method=method, url=url, error=str(e))
            raise ServiceUnavailable(f"{method} {path} failed", e) from e

    @staticmethod
    def _json(response: requests.Response, path: str) -> Any:
        if response.status_code >= 400:
            raise ServiceUnavailable(f"{path} answered {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ServiceUnavailable(f"{path} returned invalid JSON", e) from e

    def login(self, username: str, password: str) -> User:
        response = self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        if response.status_code in REJECTED_LOGIN_STATUSES:
            raise InvalidCredentials()

        payload = self._json(response, "/auth/login")
        try:
            return _to_user(payload)
        except (KeyError, TypeError) as e:
            raise ServiceUnavailable("malformed login payload", e) from e

    def companies(self) -> Tuple[Company, ...]:
        return _parse_list(self._json(self._request("GET", "/companies"), "/companies"), _to_company, "companies")

    def locations(self, company_id: str) -> Tuple[Location, ...]:
        path = f"/companies/{company_id}/locations"
        return _parse_list(self._json(self._request("GET", path), path), _to_location, "locations")

    def products(self, location_id: str) -> Tuple[Product, ...]:
        response = self._request("GET", "/products", params={"location_id": location_id})
        return _parse_list(self._json(response, "/products"), _to_product, "products")
