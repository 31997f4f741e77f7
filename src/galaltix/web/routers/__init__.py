from galaltix.web.routers.auth import router as auth_router
from galaltix.web.routers.invoices import router as invoices_router
from galaltix.web.routers.profile import router as profile_router
from galaltix.web.routers.receipts import router as receipts_router
from galaltix.web.routers.sequences import router as sequences_router
from galaltix.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "invoices_router",
    "profile_router",
    "receipts_router",
    "sequences_router",
    "users_router",
]
