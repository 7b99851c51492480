from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config import Settings
from errors import NotFoundError, register_error_handlers
from middleware import get_store, log_requests, require_api_key, validated_payload
from models import ProductStore
from query import ProductQuery
from schemas import (
    HealthResponse,
    ProductEnvelope,
    ProductListResponse,
    ProductPayload,
    ProductResponse,
    StatsResponse,
    WelcomeResponse,
)

API_VERSION = "1.0.0"

# Chaine de dependances des routes qui modifient le catalogue
AUTHENTICATED = [Depends(require_api_key)]

router = APIRouter()


def configure_logging(settings: Settings) -> None:
    # Config logging JSON (niveaux INFO, WARNING, ERROR)
    logger.remove()
    logger.add(
        sink=settings.log_file,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
        level=settings.log_level,
        serialize=True,
        rotation="1 day",
    )


def not_found(product_id: str) -> NotFoundError:
    logger.warning(f"Product {product_id} not found")
    return NotFoundError(f"Product with ID {product_id} not found")


@router.get("/", response_model=WelcomeResponse)
async def welcome():
    return {
        "message": "Welcome to the Products API!",
        "version": API_VERSION,
        "endpoints": {
            "products": "/api/products",
            "stats": "/api/products/stats",
            "health": "/health",
            "metrics": "/metrics",
            "documentation": "/docs",
        },
    }


@router.get("/metrics")
async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check endpoint"""
    return {"status": "healthy", "service": request.app.state.service_name}


@router.get("/api/products", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: ProductStore = Depends(get_store),
):
    query = ProductQuery.from_params(category=category, search=search, page=page, limit=limit)
    products, pagination = query.apply(store.list())
    logger.info(f"Listing {len(products)} of {pagination['total_items']} products (page {query.page})")
    return {"products": products, "pagination": pagination}


# Doit etre declaree avant la route {product_id}
@router.get("/api/products/stats", response_model=StatsResponse)
async def product_stats(store: ProductStore = Depends(get_store)):
    logger.info("Computing product statistics")
    return store.stats()


@router.get("/api/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, store: ProductStore = Depends(get_store)):
    logger.info(f"Fetching product {product_id}")
    product = store.get(product_id)
    if product is None:
        raise not_found(product_id)
    return product


@router.post("/api/products", response_model=ProductEnvelope, status_code=201, dependencies=AUTHENTICATED)
async def create_product(
    payload: ProductPayload = Depends(validated_payload),
    store: ProductStore = Depends(get_store),
):
    logger.info(f"Creating product: {payload.name}")
    product = store.insert(payload)
    logger.info(f"Product created with ID {product.id}")
    return {"message": "Product created successfully", "product": product}


@router.put("/api/products/{product_id}", response_model=ProductEnvelope, dependencies=AUTHENTICATED)
async def update_product(
    product_id: str,
    payload: ProductPayload = Depends(validated_payload),
    store: ProductStore = Depends(get_store),
):
    logger.info(f"Updating product {product_id}")
    product = store.update(product_id, payload)
    if product is None:
        raise not_found(product_id)
    return {"message": "Product updated successfully", "product": product}


@router.delete("/api/products/{product_id}", response_model=ProductEnvelope, dependencies=AUTHENTICATED)
async def delete_product(product_id: str, store: ProductStore = Depends(get_store)):
    logger.info(f"Deleting product {product_id}")
    product = store.delete(product_id)
    if product is None:
        raise not_found(product_id)
    return {"message": "Product deleted successfully", "product": product}


def create_app(settings: Optional[Settings] = None, store: Optional[ProductStore] = None) -> FastAPI:
    """Build the application: settings, logging, the product store and routes."""
    settings = settings or Settings.from_env()
    if store is None:
        store = ProductStore.seeded() if settings.seed_products else ProductStore()
    configure_logging(settings)

    app = FastAPI(title="Products API", version=API_VERSION)
    app.state.settings = settings
    app.state.service_name = settings.service_name
    app.state.store = store

    app.middleware("http")(log_requests)
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    settings = app.state.settings
    logger.info(f"Starting Products API on port {settings.port}")
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
