import asyncio
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("ADMIN_JWT_SECRET", "test-jwt-secret-with-enough-bytes-for-hs256")
os.environ.setdefault("STRAPI_URL", "https://cms.test")

ROOT = Path(__file__).resolve().parents[2]
BACKEND_PATH = ROOT / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

from couponadmin.core.config import Settings
from couponadmin.db.base import Base
from couponadmin.db.session import SessionLocal, engine, get_db
from couponadmin.exceptions import RecordNotFoundError, UnauthorizedError
from couponadmin.main import app
from couponadmin.models.coupons import Coupon, CouponFilters, CouponUpdate, Merchant
from couponadmin.services.grid import CouponGrid


ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


def make_coupon(document_id, priority, merchant="m1", **overrides) -> Coupon:
    data = {
        "document_id": document_id,
        "coupon_title": overrides.pop("coupon_title", f"Coupon {document_id}"),
        "priority": priority,
        "merchant": Merchant(document_id=merchant, name=merchant.upper()) if merchant else None,
        "affiliate_link": "https://example.com/go",
    }
    data.update(overrides)
    return Coupon(**data)


def make_settings(**overrides) -> Settings:
    values = {
        "strapi_url": "https://cms.test",
        "strapi_token": "token",
        "reorder_concurrency": 4,
        "reorder_bucket_mode": "merchant",
        "top_priority_highest": True,
    }
    values.update(overrides)
    return Settings(**values)


class FakeStore:
    """In-memory record store that lists like Strapi (priority desc, then id)."""

    def __init__(self, coupons: List[Coupon], merchants: Optional[List[Merchant]] = None):
        self.records: Dict[str, Coupon] = {c.document_id: c for c in coupons}
        self.merchants = merchants or []
        self.fail_ids = set()
        self.unauthorized_ids = set()
        self.update_calls: List[tuple] = []
        self.list_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate: Optional[asyncio.Event] = None
        self.update_started: Optional[asyncio.Event] = None
        self.on_update = None

    async def list_coupons(self, filters: Optional[CouponFilters] = None) -> List[Coupon]:
        self.list_calls += 1
        rows = list(self.records.values())
        if filters and filters.market:
            rows = [r for r in rows if r.market == filters.market]
        return sorted(rows, key=lambda r: (-(r.priority or 0), r.document_id))

    async def update_coupon(self, document_id: str, patch: CouponUpdate) -> Coupon:
        self.update_calls.append((document_id, patch.model_dump(exclude_unset=True)))
        if self.on_update is not None:
            self.on_update(document_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.update_started is not None:
                self.update_started.set()
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
            if document_id in self.unauthorized_ids:
                raise UnauthorizedError("Forbidden", 403)
            if document_id in self.fail_ids or document_id not in self.records:
                raise RecordNotFoundError(f"Coupon {document_id} not found", 404)
            fields = patch.model_dump(exclude_unset=True)
            fields.pop("merchant", None)
            if fields.get("coupon_status") is not None:
                fields["coupon_status"] = fields["coupon_status"].value
            updated = self.records[document_id].model_copy(update=fields)
            self.records[document_id] = updated
            return updated
        finally:
            self.in_flight -= 1

    async def get_coupon(self, document_id: str) -> Coupon:
        if document_id not in self.records:
            raise RecordNotFoundError(f"Coupon {document_id} not found", 404)
        return self.records[document_id]

    async def create_coupon(self, data) -> Coupon:
        document_id = f"new-{len(self.records) + 1}"
        coupon = make_coupon(
            document_id,
            data.priority,
            merchant=data.merchant,
            coupon_title=data.coupon_title,
        )
        self.records[document_id] = coupon
        return coupon

    async def delete_coupon(self, document_id: str) -> None:
        if document_id not in self.records:
            raise RecordNotFoundError(f"Coupon {document_id} not found", 404)
        del self.records[document_id]

    async def list_merchants(self) -> List[Merchant]:
        return list(self.merchants)


@pytest.fixture(scope="session", autouse=True)
def _create_test_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def fake_store():
    return FakeStore(
        [
            make_coupon("c1", 1, merchant="m1", market="HK"),
            make_coupon("c2", 2, merchant="m1", market="HK"),
            make_coupon("c3", 1, merchant="m2", market="TW"),
        ],
        merchants=[Merchant(document_id="m1", name="Amazon"), Merchant(document_id="m2", name="Target")],
    )


@pytest.fixture()
def client(db_session, fake_store):
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    original_store = app.state.store
    original_grid = app.state.grid
    app.state.store = fake_store
    app.state.grid = CouponGrid(fake_store, make_settings())
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, headers=ADMIN_HEADERS) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.store = original_store
    app.state.grid = original_grid
