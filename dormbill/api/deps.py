"""
FastAPI dependencies shared by the v1 routers.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from dormbill.api import deps

    router = APIRouter()

    @router.get("/me")
    def read_me(current_user = Depends(deps.get_current_user)):
        return current_user
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from dormbill.core.background_tasks import JobQueue
from dormbill.core.exceptions import AuthenticationError, ForbiddenError, NotFoundError
from dormbill.core.security import CurrentUser, JWTManager, ensure_admin
from dormbill.db.session import get_db
from dormbill.models.tenant import Tenant
from dormbill.repositories import TenantRepository
from dormbill.services.billing import BillComposer, MonthlyBillGenerator, UtilityService
from dormbill.services.notification import LineMessagingClient, NotificationDispatcher
from dormbill.services.payment import PaymentReconciler

bearer_scheme = HTTPBearer(auto_error=False)


# --- Application state ---------------------------------------------------------

def get_jwt_manager(request: Request) -> JWTManager:
    return request.app.state.jwt_manager


def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


def get_line_client(request: Request) -> LineMessagingClient:
    return request.app.state.line_client


# --- Authentication & Authorization -------------------------------------------

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return jwt_manager.resolve_user(credentials.credentials)


def get_admin_user(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    return ensure_admin(current_user)


def get_current_tenant(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Tenant:
    """Tenant profile of a tenant-role caller."""
    if not current_user.is_tenant:
        raise ForbiddenError("Tenant access required")
    tenant = TenantRepository(db).find_by_user_id(current_user.user_id)
    if tenant is None:
        raise NotFoundError("Tenant", message="Tenant profile not found")
    return tenant


def get_tenant_scope(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Optional[str]:
    """
    Tenant id that restricts reads: None for admins (everything), the
    caller's own tenant id for tenants.
    """
    if current_user.is_admin:
        return None
    return get_current_tenant(current_user, db).id


# --- Services -----------------------------------------------------------------

def get_utility_service(db: Session = Depends(get_db)) -> UtilityService:
    return UtilityService(db)


def get_bill_composer(
    db: Session = Depends(get_db),
    job_queue: JobQueue = Depends(get_job_queue),
) -> BillComposer:
    return BillComposer(db, job_queue)


def get_bill_generator(
    db: Session = Depends(get_db),
    job_queue: JobQueue = Depends(get_job_queue),
) -> MonthlyBillGenerator:
    return MonthlyBillGenerator(db, job_queue)


def get_payment_reconciler(
    db: Session = Depends(get_db),
    job_queue: JobQueue = Depends(get_job_queue),
) -> PaymentReconciler:
    return PaymentReconciler(db, job_queue)


def get_notification_dispatcher(
    db: Session = Depends(get_db),
    line_client: LineMessagingClient = Depends(get_line_client),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, line_client)


__all__ = [
    "get_db",
    "get_jwt_manager",
    "get_job_queue",
    "get_line_client",
    "get_current_user",
    "get_admin_user",
    "get_current_tenant",
    "get_tenant_scope",
    "get_utility_service",
    "get_bill_composer",
    "get_bill_generator",
    "get_payment_reconciler",
    "get_notification_dispatcher",
]
