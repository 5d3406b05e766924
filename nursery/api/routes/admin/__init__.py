from .import_jobs import import_jobs_router
from .products import products_admin_router

admin_routers = [
    ("import-jobs", import_jobs_router),
    ("products", products_admin_router),
]

__all__ = ["admin_routers"]
