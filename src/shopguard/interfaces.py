from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from .models import Shop


class ShopDirectory(ABC):
    """Read-only shop lookup supplied by the shop-directory collaborator.

    The engine only consults it for shop status and to detect assignments
    that point at shops which no longer exist.
    """

    @abstractmethod
    def get_shop(self, shop_id: str) -> Optional[Shop]:
        raise NotImplementedError

    def status_of(self, shop_id: str) -> Optional[str]:
        shop = self.get_shop(shop_id)
        return shop.status if shop is not None else None


class InMemoryShopDirectory(ShopDirectory):
    """Convenience directory backed by a dict, for tests and embedding."""

    def __init__(self, shops: Optional[Iterable[Shop]] = None):
        self._shops: Dict[str, Shop] = {shop.shop_id: shop for shop in shops or ()}

    def get_shop(self, shop_id: str) -> Optional[Shop]:
        return self._shops.get(shop_id)

    def put(self, shop: Shop) -> None:
        self._shops[shop.shop_id] = shop

    def delete(self, shop_id: str) -> None:
        self._shops.pop(shop_id, None)


__all__ = ["InMemoryShopDirectory", "ShopDirectory"]
