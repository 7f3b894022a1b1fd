from src.analysis_gateway.api.routers.auth import router as auth_router
from src.analysis_gateway.api.routers.analysis import router as analysis_router
from src.analysis_gateway.api.routers.users import router as users_router

__all__ = ["auth_router", "analysis_router", "users_router"]
