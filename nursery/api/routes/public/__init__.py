from .health import health_router
from .categories import category_router
from .products import product_router

public_routers = [
    ("health", health_router),
    ("categories", category_router),
    ("products", product_router),
]

__all__ = ["public_routers"]
