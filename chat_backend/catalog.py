"""
Product catalog for the recommendation chat backend.

The catalog is built once at process start and passed into the pipeline.
It is never mutated afterwards, so concurrent requests read it without locks.

Construction invariants (checked in ``Catalog.__init__``):
- at least one product
- ids pairwise distinct
- ids all numbers or all strings
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from chat_backend.errors import (
    CatalogError,
    DuplicateProductId,
    EmptyCatalog,
    MixedProductIdTypes,
)
from chat_backend.schemas.products import IdType, Product, ProductId
from chat_backend.utils.logging import get_logger

logger = get_logger(__name__)


def _id_type_of(product_id: object) -> IdType:
    if isinstance(product_id, bool):
        raise MixedProductIdTypes(product_id)
    if isinstance(product_id, int):
        return "number"
    if isinstance(product_id, str):
        return "string"
    raise MixedProductIdTypes(product_id)


class Catalog:
    """Immutable, ordered collection of products with an id index."""

    def __init__(self, products: Iterable[Union[Product, Dict[str, Any]]]) -> None:
        items: List[Product] = [
            p if isinstance(p, Product) else Product.model_validate(p)
            for p in products
        ]
        if not items:
            raise EmptyCatalog()

        id_type = _id_type_of(items[0].id)
        index: Dict[ProductId, Product] = {}
        for product in items:
            if _id_type_of(product.id) != id_type:
                raise MixedProductIdTypes(product.id, expected=id_type)
            if product.id in index:
                raise DuplicateProductId(product.id)
            index[product.id] = product

        self._products: Tuple[Product, ...] = tuple(items)
        self._index = index
        self._id_type: IdType = id_type

    @property
    def id_type(self) -> IdType:
        """Identifier type every product id shares: "number" or "string"."""
        return self._id_type

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    def get(self, product_id: object) -> Optional[Product]:
        """Exact identifier lookup. No coercion between numbers and strings."""
        if isinstance(product_id, bool) or product_id is None:
            return None
        try:
            return self._index.get(product_id)  # type: ignore[arg-type]
        except TypeError:
            # unhashable ids (lists, dicts) can never match
            return None

    def choice(self, rng: Optional[random.Random] = None) -> Product:
        """Pick a product uniformly at random."""
        return (rng or random).choice(self._products)

    def __contains__(self, product_id: object) -> bool:
        return self.get(product_id) is not None

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __repr__(self) -> str:
        return f"Catalog(size={len(self)}, id_type={self._id_type!r})"


# =============================================================================
# DEFAULT CATALOG
# =============================================================================
# Harness line-up of the POOPKY mall. Descriptions are the short features the
# model sees in its manifest.
# =============================================================================

DEFAULT_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "프리미엄 가죽 하네스",
        "price": "72,000",
        "image": "https://placehold.co/100x100/A0522D/ffffff?text=Leather",
        "link": "https://poopky-mall.com/product/1",
        "description": "고급스러운 가죽 소재",
    },
    {
        "id": 2,
        "name": "반사 스트라이프 산책 하네스",
        "price": "45,000",
        "image": "https://placehold.co/100x100/0000FF/ffffff?text=Reflective",
        "link": "https://poopky-mall.com/product/2",
        "description": "야간 산책용 반사 기능",
    },
    {
        "id": 3,
        "name": "초경량 소프트 에어 하네스",
        "price": "32,000",
        "image": "https://placehold.co/100x100/87CEEB/ffffff?text=AirMesh",
        "link": "https://poopky-mall.com/product/3",
        "description": "가볍고 통풍 잘됨",
    },
    {
        "id": 4,
        "name": "대형견용 튼튼한 택티컬 하네스",
        "price": "98,000",
        "image": "https://placehold.co/100x100/4B0082/ffffff?text=Tactical",
        "link": "https://poopky-mall.com/product/4",
        "description": "견고하고 튼튼함",
    },
    {
        "id": 5,
        "name": "맞춤형 이름 각인 하네스",
        "price": "55,000",
        "image": "https://placehold.co/100x100/FFD700/000000?text=Custom",
        "link": "https://poopky-mall.com/product/5",
        "description": "일반적인 소재",
    },
]


def default_catalog() -> Catalog:
    return Catalog(DEFAULT_PRODUCTS)


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """
    Build the process catalog.

    Args:
        path: JSON file holding a list of product objects. When omitted the
            built-in catalog is used.

    Returns:
        Catalog

    Raises:
        CatalogError: If the file is unreadable, not a list, holds an invalid
            product, or violates a catalog invariant.
    """
    if not path:
        catalog = default_catalog()
        logger.info(f"Using built-in catalog with {len(catalog)} products")
        return catalog

    catalog_path = Path(path)
    try:
        with catalog_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Failed to read catalog file {catalog_path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogError(f"Catalog file {catalog_path} must contain a JSON list of products")

    try:
        catalog = Catalog(data)
    except ValidationError as e:
        raise CatalogError(f"Invalid product in {catalog_path}: {e}") from e

    logger.info(f"Loaded catalog from {catalog_path}: {len(catalog)} products, id_type={catalog.id_type}")
    return catalog
