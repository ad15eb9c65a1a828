"""Route modules."""

from .auth import router as auth_router
from .downloads import router as downloads_router
from .monitoring import router as monitoring_router
from .prompts import router as prompts_router
from .transcriptions import router as transcriptions_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "downloads_router",
    "monitoring_router",
    "prompts_router",
    "transcriptions_router",
    "users_router",
]
