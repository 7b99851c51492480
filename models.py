import threading
import uuid
from collections import Counter
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from schemas import ProductPayload


class Product(BaseModel):
    id: str
    name: str
    description: str
    price: Union[int, float]
    category: str
    in_stock: bool = Field(True, alias="inStock")

    model_config = ConfigDict(populate_by_name=True)


# Produits d'exemple charges au demarrage
SEED_PRODUCTS = [
    ProductPayload(
        name="Laptop",
        description="High-performance laptop with 16GB RAM",
        price=1200,
        category="electronics",
        inStock=True,
    ),
    ProductPayload(
        name="Smartphone",
        description="Latest model with 128GB storage",
        price=800,
        category="electronics",
        inStock=True,
    ),
    ProductPayload(
        name="Coffee Maker",
        description="Programmable coffee maker with timer",
        price=50,
        category="kitchen",
        inStock=False,
    ),
]


class ProductStore:
    """In-memory product collection.

    Every public method takes the store lock, so the store can be shared by
    handlers running on worker threads. Records handed out are copies; the
    only way to change a stored product is through update().
    """

    def __init__(self, products: Optional[List[Product]] = None):
        self._lock = threading.Lock()
        self._products: List[Product] = list(products or [])

    @classmethod
    def seeded(cls) -> "ProductStore":
        store = cls()
        for payload in SEED_PRODUCTS:
            store.insert(payload)
        return store

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)

    def list(self) -> List[Product]:
        with self._lock:
            return [p.model_copy() for p in self._products]

    def get(self, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self._find(product_id)
            return product.model_copy() if product else None

    def insert(self, payload: ProductPayload) -> Product:
        in_stock = True if payload.in_stock is None else payload.in_stock
        with self._lock:
            product_id = str(uuid.uuid4())
            while self._find(product_id) is not None:
                product_id = str(uuid.uuid4())
            product = Product(
                id=product_id,
                name=payload.name,
                description=payload.description,
                price=payload.price,
                category=payload.category,
                in_stock=in_stock,
            )
            self._products.append(product)
            return product.model_copy()

    def update(self, product_id: str, payload: ProductPayload) -> Optional[Product]:
        with self._lock:
            index = self._index(product_id)
            if index is None:
                return None
            current = self._products[index]
            updated = current.model_copy(update={
                "name": payload.name,
                "description": payload.description,
                "price": payload.price,
                "category": payload.category,
                "in_stock": current.in_stock if payload.in_stock is None else payload.in_stock,
            })
            self._products[index] = updated
            return updated.model_copy()

    def delete(self, product_id: str) -> Optional[Product]:
        with self._lock:
            index = self._index(product_id)
            if index is None:
                return None
            return self._products.pop(index)

    def clear(self) -> None:
        with self._lock:
            self._products.clear()

    def stats(self) -> Dict[str, object]:
        with self._lock:
            in_stock = sum(1 for p in self._products if p.in_stock)
            return {
                "total_products": len(self._products),
                "in_stock_products": in_stock,
                "out_of_stock_products": len(self._products) - in_stock,
                "category_count": dict(Counter(p.category for p in self._products)),
            }

    # Les helpers suivants supposent que le verrou est deja pris
    def _find(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def _index(self, product_id: str) -> Optional[int]:
        return next((i for i, p in enumerate(self._products) if p.id == product_id), None)
