import math
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

REQUIRED_FIELDS = ("name", "description", "price", "category")


def _fail(message: str):
    raise PydanticCustomError("product_payload", message)


def _fits_float(value) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class ProductPayload(BaseModel):
    """Corps JSON d'une creation ou mise a jour de produit."""

    name: str
    description: str
    price: Union[int, float]
    category: str
    in_stock: Optional[bool] = Field(None, alias="inStock")

    @model_validator(mode="before")
    @classmethod
    def check_payload(cls, data: Any) -> Any:
        # Regles verifiees dans l'ordre, la premiere erreur l'emporte
        if not isinstance(data, dict) or not all(data.get(f) for f in REQUIRED_FIELDS):
            _fail("Missing required fields: name, description, price, category")
        if not isinstance(data["name"], str) or not isinstance(data["description"], str):
            _fail("Name and description must be strings")
        price = data["price"]
        if (
            isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not _fits_float(price)
            or price <= 0
        ):
            _fail("Price must be a positive number")
        if not isinstance(data["category"], str):
            _fail("Category must be a string")
        if "inStock" in data and not isinstance(data["inStock"], bool):
            _fail("inStock must be a boolean")
        return data


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str
    price: Union[int, float]
    category: str
    in_stock: bool = Field(alias="inStock")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ProductEnvelope(BaseModel):
    message: str
    product: ProductResponse


class Pagination(BaseModel):
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_items: int = Field(alias="totalItems")
    items_per_page: int = Field(alias="itemsPerPage")

    model_config = ConfigDict(populate_by_name=True)


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    pagination: Pagination


class StatsResponse(BaseModel):
    total_products: int = Field(alias="totalProducts")
    in_stock_products: int = Field(alias="inStockProducts")
    out_of_stock_products: int = Field(alias="outOfStockProducts")
    category_count: Dict[str, int] = Field(alias="categoryCount")

    model_config = ConfigDict(populate_by_name=True)


class WelcomeResponse(BaseModel):
    message: str
    version: str
    endpoints: Dict[str, str]


class HealthResponse(BaseModel):
    status: str
    service: str


class ErrorResponse(BaseModel):
    error: str
    message: str
