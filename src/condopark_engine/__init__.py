"""CondoPark-Engine: tenant-isolated parking slot reservations for condominiums."""

from condopark_engine.access.guard import CallerContext, TenantAccessGuard, authorize_tenant
from condopark_engine.pricing.calculator import calculate_price, duration_hours
from condopark_engine.ratelimit.limiter import RateLimiter, RateLimitResult

__all__ = [
    "CallerContext",
    "TenantAccessGuard",
    "authorize_tenant",
    "calculate_price",
    "duration_hours",
    "RateLimiter",
    "RateLimitResult",
]
__version__ = "0.1.0"
