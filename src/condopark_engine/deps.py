"""Dependency injection singletons for CondoPark-Engine."""

from condopark_engine.access.guard import TenantAccessGuard
from condopark_engine.auth.service import AuthService
from condopark_engine.bookings.service import ReservationEngine
from condopark_engine.common.config import get_settings
from condopark_engine.common.database import DatabaseManager
from condopark_engine.ratelimit.limiter import RateLimiter
from condopark_engine.slots.service import SlotService
from condopark_engine.tenants.rotation import RotationManager
from condopark_engine.tenants.service import TenantService

_db: DatabaseManager | None = None
_guard: TenantAccessGuard | None = None
_login_limiter: RateLimiter | None = None
_signup_limiter: RateLimiter | None = None
_auth: AuthService | None = None
_slots: SlotService | None = None
_reservations: ReservationEngine | None = None
_tenants: TenantService | None = None
_rotation: RotationManager | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_guard() -> TenantAccessGuard:
    global _guard
    if _guard is None:
        _guard = TenantAccessGuard(get_settings())
    return _guard


def get_login_limiter() -> RateLimiter:
    global _login_limiter
    if _login_limiter is None:
        settings = get_settings()
        _login_limiter = RateLimiter(
            settings.login_rate_limit, settings.rate_limit_window, scope="login"
        )
    return _login_limiter


def get_signup_limiter() -> RateLimiter:
    global _signup_limiter
    if _signup_limiter is None:
        settings = get_settings()
        _signup_limiter = RateLimiter(
            settings.signup_rate_limit, settings.rate_limit_window, scope="signup"
        )
    return _signup_limiter


def get_auth_service() -> AuthService:
    global _auth
    if _auth is None:
        _auth = AuthService(
            get_settings(),
            get_guard(),
            login_limiter=get_login_limiter(),
            signup_limiter=get_signup_limiter(),
        )
    return _auth


def get_slot_service() -> SlotService:
    global _slots
    if _slots is None:
        _slots = SlotService()
    return _slots


def get_reservation_engine() -> ReservationEngine:
    global _reservations
    if _reservations is None:
        _reservations = ReservationEngine(get_settings(), get_db())
    return _reservations


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService(get_settings().tenant_code_random_length)
    return _tenants


def get_rotation_manager() -> RotationManager:
    global _rotation
    if _rotation is None:
        _rotation = RotationManager(get_db(), get_tenant_service())
    return _rotation


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _guard, _login_limiter, _signup_limiter, _auth, _slots
    global _reservations, _tenants, _rotation
    _db = None
    _guard = None
    _login_limiter = None
    _signup_limiter = None
    _auth = None
    _slots = None
    _reservations = None
    _tenants = None
    _rotation = None
