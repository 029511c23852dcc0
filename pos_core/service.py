from typing import Optional, Protocol, Tuple

import structlog

from . import cart as engine
from .catalog import ALL, CatalogView, filter_catalog
from .domain import Cart, Company, Location, MoneyTotals, Product, Receipt, Session, User
from .errors import InvalidCredentials, InvalidSelection, ServiceUnavailable
from .money import TaxPolicy, default_tax

logger = structlog.get_logger(__name__)

NO_COMPANY = "no_company"
COMPANY_CHOSEN = "company_chosen"
FULLY_RESOLVED = "fully_resolved"


class PosGateway(Protocol):
    """Асинхронные вызовы бэкенда, от которых зависят сервисы"""

    async def login(self, username: str, password: str) -> User: ...

    async def companies(self) -> Tuple[Company, ...]: ...

    async def locations(self, company_id: str) -> Tuple[Location, ...]: ...

    async def products(self, location_id: str) -> Tuple[Product, ...]: ...


def resolve(user: User, company: Company, location: Location) -> Session:
    """Создаёт Session; InvalidSelection, если локация принадлежит другой компании"""
    return Session(user=user, company=company, location=location)


# ============ AuthGate ============


class AuthGate:
    def __init__(self, gateway: PosGateway):
        self.gateway = gateway

    async def authenticate(self, username: str, password: str) -> User:
        """Обменивает логин и пароль на User. Учётные данные не сохраняются"""
        if not username or not username.strip() or not password:
            raise InvalidCredentials("username and password are required")

        try:
            user = await self.gateway.login(username.strip(), password)
        except InvalidCredentials:
            logger.info("login_rejected", username=username.strip())
            raise

        logger.info("login_succeeded", user_id=user.id)
        return user


# ============ ContextResolver ============


class ContextResolver:
    """
    Выбор компания -> локация для одного пользователя.

    Каждый (повторный) выбор компании увеличивает эпоху; ответы с локациями,
    пришедшие после более нового выбора, отбрасываются
    """

    def __init__(self, gateway: PosGateway, user: User):
        self.gateway = gateway
        self.user = user
        self.companies: Tuple[Company, ...] = ()
        self.locations: Tuple[Location, ...] = ()
        self.company: Optional[Company] = None
        self.location: Optional[Location] = None
        self._known_company_ids: set = set()
        self._epoch = 0

    @property
    def state(self) -> str:
        if self.company is None:
            return NO_COMPANY
        if self.location is None:
            return COMPANY_CHOSEN
        return FULLY_RESOLVED

    async def list_companies(self) -> Tuple[Company, ...]:
        """Пустой кортеж, если у организации нет компаний"""
        companies = await self.gateway.companies()
        self.companies = companies
        self._known_company_ids.update(c.id for c in companies)
        logger.info("companies_loaded", user_id=self.user.id, count=len(companies))
        return companies

    async def list_locations(self, company_id: str) -> Tuple[Location, ...]:
        if company_id not in self._known_company_ids:
            raise InvalidSelection(f"unknown company '{company_id}'")
        return await self.gateway.locations(company_id)

    async def select_company(self, company_id: Optional[str]) -> Optional[Tuple[Location, ...]]:
        """
        Выбирает компанию, сбрасывает локацию и загружает локации компании.
        Пустой company_id снимает выбор. None, если более новый выбор
        успел заменить этот до прихода локаций
        """
        self._epoch += 1
        epoch = self._epoch

        self.location = None
        self.locations = ()

        if not company_id:
            self.company = None
            return ()

        company = next((c for c in self.companies if c.id == company_id), None)
        if company is None:
            self.company = None
            raise InvalidSelection(f"unknown company '{company_id}'")

        self.company = company
        logger.info("company_selected", company_id=company.id, epoch=epoch)

        try:
            locations = await self.list_locations(company.id)
        except ServiceUnavailable:
            if epoch != self._epoch:
                logger.info("stale_response_dropped", request="locations", company_id=company.id)
                return None
            raise

        if epoch != self._epoch:
            logger.info("stale_response_dropped", request="locations", company_id=company.id)
            return None

        self.locations = locations
        return locations

    def select_location(self, location_id: str) -> Location:
        if self.company is None:
            raise InvalidSelection("select a company before a location")

        location = next((loc for loc in self.locations if loc.id == location_id), None)
        if location is None:
            raise InvalidSelection(
                f"location '{location_id}' is not available for company '{self.company.id}'"
            )

        self.location = location
        logger.info("location_selected", company_id=self.company.id, location_id=location.id)
        return location

    def resolve(self) -> Session:
        """Продолжить: отдаёт Session, когда выбраны компания и локация"""
        if self.state != FULLY_RESOLVED:
            raise InvalidSelection("company and location must both be selected")
        return resolve(self.user, self.company, self.location)


# ============ CatalogLoader ============


class CatalogLoader:
    """Каталог текущей локации; при сбое загрузки остаётся старый"""

    def __init__(self, gateway: PosGateway):
        self.gateway = gateway
        self.products: Tuple[Product, ...] = ()
        self.location_id: Optional[str] = None
        self._epoch = 0

    async def load(self, location_id: str) -> Tuple[Product, ...]:
        self._epoch += 1
        epoch = self._epoch

        try:
            products = await self.gateway.products(location_id)
        except ServiceUnavailable as e:
            if epoch != self._epoch:
                logger.info("stale_response_dropped", request="products", location_id=location_id)
                return self.products
            logger.warning("catalog_load_failed", location_id=location_id, error=str(e))
            raise

        if epoch != self._epoch:
            logger.info("stale_response_dropped", request="products", location_id=location_id)
            return self.products

        self.products = products
        self.location_id = location_id
        logger.info("catalog_loaded", location_id=location_id, count=len(products))
        return products


# ============ Контроллер ============


class PosController:
    """
    Фасад кассы: владеет пользователем, Session и Cart.
    Корзина меняется только через функции cart
    """

    def __init__(self, gateway: PosGateway, tax_policy: TaxPolicy = default_tax):
        self.gateway = gateway
        self.tax_policy = tax_policy
        self.auth = AuthGate(gateway)
        self.user: Optional[User] = None
        self.resolver: Optional[ContextResolver] = None
        self.session: Optional[Session] = None
        self.catalog = CatalogLoader(gateway)
        self.cart = Cart()
        self.category = ALL
        self.search = ""

    @property
    def step(self) -> str:
        if self.user is None:
            return "login"
        if self.session is None:
            return "select"
        return "pos"

    # --- вход / выбор ---

    async def login(self, username: str, password: str) -> User:
        user = await self.auth.authenticate(username, password)
        self.user = user
        self.resolver = ContextResolver(self.gateway, user)
        return user

    def _require_resolver(self) -> ContextResolver:
        if self.resolver is None:
            raise InvalidSelection("log in first")
        return self.resolver

    async def begin_selection(self) -> Tuple[Company, ...]:
        return await self._require_resolver().list_companies()

    async def select_company(self, company_id: Optional[str]):
        return await self._require_resolver().select_company(company_id)

    def select_location(self, location_id: str) -> Location:
        return self._require_resolver().select_location(location_id)

    async def start_session(self) -> Session:
        """
        Создаёт сессию, пустую корзину и загружает каталог локации.
        При сбое каталога сессия остаётся; повтор через reload_catalog()
        """
        session = self._require_resolver().resolve()
        self.session = session
        self.cart = Cart()
        self.catalog = CatalogLoader(self.gateway)
        self.category = ALL
        self.search = ""
        logger.info(
            "session_started",
            user_id=session.user.id,
            company_id=session.company.id,
            location_id=session.location.id,
        )
        await self.catalog.load(session.location.id)
        return session

    async def reload_catalog(self) -> Tuple[Product, ...]:
        return await self.catalog.load(self._require_session().location.id)

    # --- корзина ---

    def _require_session(self) -> Session:
        if self.session is None:
            raise InvalidSelection("no active session")
        return self.session

    def add(self, product: Product) -> Cart:
        self._require_session()
        self.cart = engine.add_item(self.cart, product)
        return self.cart

    def set_quantity(self, product_id: str, n: int) -> Cart:
        self._require_session()
        self.cart = engine.set_quantity(self.cart, product_id, n)
        return self.cart

    def remove(self, product_id: str) -> Cart:
        self._require_session()
        self.cart = engine.remove_item(self.cart, product_id)
        return self.cart

    def clear_cart(self) -> Cart:
        self.cart = engine.clear(self.cart)
        return self.cart

    def totals(self) -> MoneyTotals:
        location = self.session.location if self.session else None
        return engine.compute_totals(self.cart, self.tax_policy, location)

    def checkout(self) -> Receipt:
        receipt = engine.checkout(self.cart, self._require_session(), self.tax_policy)
        self.cart = engine.clear(self.cart)
        logger.info(
            "checkout_completed",
            receipt_id=receipt.id,
            lines=len(receipt.lines),
            total=receipt.totals.total,
        )
        return receipt

    # --- витрина ---

    def set_category(self, category: str) -> None:
        self.category = category

    def set_search(self, text: str) -> None:
        self.search = text

    def visible_products(self) -> CatalogView:
        return filter_catalog(self.catalog.products, self.category, self.search)

    # --- выход ---

    def logout(self) -> None:
        """Сбрасывает пользователя, сессию и текущую корзину"""
        if self.user is not None:
            logger.info("logout", user_id=self.user.id)
        self.user = None
        self.resolver = None
        self.session = None
        self.cart = Cart()
        self.catalog = CatalogLoader(self.gateway)
        self.category = ALL
        self.search = ""
