from typing import Callable, Iterator, Sequence, Tuple

from .domain import Product

ALL = "All"
CATEGORIES: Tuple[str, ...] = (ALL, "Favorites", "Summer sale", "Clearance", "New arrivals")


# ============ Замыкания-фильтры ============


def by_category(category: str) -> Callable[[Product], bool]:
    """Фильтр по категории, "All" пропускает всё"""
    if category == ALL:
        return lambda p: True
    return lambda p: category in p.category_tags


def by_search(text: str) -> Callable[[Product], bool]:
    """Поиск подстроки в названии без учёта регистра"""
    needle = text.lower()
    if needle == "":
        return lambda p: True
    return lambda p: needle in p.name.lower()


# ============ Ленивая витрина ============


class CatalogView:
    """
    Отфильтрованное представление каталога.
    Ничего не вычисляется до итерации, каждая итерация начинается заново,
    поэтому витрина всегда отражает исходную последовательность
    """

    def __init__(self, products: Sequence[Product], category: str = ALL, search: str = ""):
        self.products = products
        self.category = category
        self.search = search

    def __iter__(self) -> Iterator[Product]:
        in_category = by_category(self.category)
        matches = by_search(self.search)
        for product in self.products:
            if in_category(product) and matches(product):
                yield product

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None


def filter_catalog(products: Sequence[Product], category_filter: str, search_text: str) -> CatalogView:
    return CatalogView(products, category_filter, search_text)
