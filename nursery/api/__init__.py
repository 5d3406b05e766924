# Public routers (catalog reads, health)
from .routes.public import public_routers

# Admin routers (guarded by the API key gate)
from .routes.admin import admin_routers

__all__ = ["public_routers", "admin_routers"]
