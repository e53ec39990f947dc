"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /accounts - Account registration, login and maintenance
- /reports - Route status reports, statistics and categories
- /metrics - Prometheus metrics
- /healthz, /readyz - Health checks
"""
from .accounts import router as accounts_router
from .healthz import router as healthz_router
from .metrics import router as metrics_router
from .reports import router as reports_router

__all__ = ["accounts_router", "healthz_router", "metrics_router", "reports_router"]
