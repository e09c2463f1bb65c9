from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict

import httpx
import pytest
from fastapi.testclient import TestClient

from dormbill.config.settings import Environment, Settings
from dormbill.core.background_tasks import InMemoryJobQueue
from dormbill.core.security import JWTManager
from dormbill.db.session import Database
from dormbill.main import create_app
from dormbill.models.base.enums import BillItemType, RoomStatus, TenantStatus, UserRole
from dormbill.models.room import Building, Room
from dormbill.models.tenant import Tenant
from dormbill.schemas.billing import BillItemCreate
from dormbill.services.billing import BillComposer
from dormbill.services.notification import LineMessagingClient

from tests.helpers import ADMIN_USER_ID, MARCH, MARCH_DUE, TENANT_USER_ID, FakeLineApi


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        ENVIRONMENT=Environment.TESTING,
        DB_CREATE_TABLES=False,
        JWT_SECRET_KEY="test-secret",
        LINE_CHANNEL_ACCESS_TOKEN="test-line-token",
    )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def session(database):
    db_session = database.session()
    yield db_session
    db_session.close()


@pytest.fixture
def job_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue()


@pytest.fixture
def line_api() -> FakeLineApi:
    return FakeLineApi()


@pytest.fixture
def line_client(line_api):
    client = LineMessagingClient("test-line-token", transport=httpx.MockTransport(line_api))
    yield client
    client.close()


@pytest.fixture
def building(session) -> Building:
    building = Building(name="Main Building", address="99 Phahonyothin Rd")
    session.add(building)
    session.commit()
    return building


@pytest.fixture
def room(session, building) -> Room:
    room = Room(
        building_id=building.id,
        room_number="101",
        floor=1,
        monthly_rent=Decimal("3000.00"),
        status=RoomStatus.OCCUPIED,
        max_occupancy=2,
    )
    session.add(room)
    session.commit()
    return room


@pytest.fixture
def make_tenant(session, room):
    counter = {"n": 0}

    def _make(**overrides: Any) -> Tenant:
        counter["n"] += 1
        fields: Dict[str, Any] = {
            "user_id": f"generated-user-{counter['n']}",
            "room_id": room.id,
            "first_name": "Tenant",
            "last_name": str(counter["n"]),
            "phone": "0800000000",
            "contract_start_date": date(2024, 1, 1),
            "move_in_date": date(2024, 1, 1),
            "status": TenantStatus.ACTIVE,
            "line_user_id": f"U{counter['n']:010d}",
        }
        fields.update(overrides)
        tenant = Tenant(**fields)
        session.add(tenant)
        session.commit()
        return tenant

    return _make


@pytest.fixture
def tenant(make_tenant) -> Tenant:
    return make_tenant(user_id=TENANT_USER_ID, first_name="Somchai", last_name="Jaidee")


@pytest.fixture
def composer(session, job_queue, test_settings) -> BillComposer:
    return BillComposer(session, job_queue, test_settings)


@pytest.fixture
def make_bill(composer, room):
    """Bill with a single rent line of the given amount."""

    def _make(tenant: Tenant, amount: str = "1000", billing_month: date = MARCH, due_date: date = MARCH_DUE):
        return composer.create_bill(
            tenant_id=tenant.id,
            room_id=room.id,
            billing_month=billing_month,
            due_date=due_date,
            items=[BillItemCreate(item_type=BillItemType.RENT, unit_price=Decimal(amount))],
        )

    return _make


@pytest.fixture
def jwt_manager(test_settings) -> JWTManager:
    return JWTManager.from_settings(test_settings)


@pytest.fixture
def admin_headers(jwt_manager) -> Dict[str, str]:
    token = jwt_manager.create_access_token(ADMIN_USER_ID, UserRole.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tenant_headers(jwt_manager) -> Dict[str, str]:
    token = jwt_manager.create_access_token(TENANT_USER_ID, UserRole.TENANT)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(database, job_queue, line_client, test_settings):
    app = create_app(
        database=database,
        job_queue=job_queue,
        line_client=line_client,
        config=test_settings,
    )
    with TestClient(app) as test_client:
        yield test_client
