import asyncio
from types import SimpleNamespace

from conftest import FakeStore, make_coupon
from couponadmin.api.routers import admin_tasks
from couponadmin.workers import tasks


def test_trigger_recompute_queues_task(client, monkeypatch):
    queued = {}

    def fake_delay(**kwargs):
        queued.update(kwargs)
        return SimpleNamespace(id="task-1")

    monkeypatch.setattr(admin_tasks.recompute_priorities_task, "delay", fake_delay)

    response = client.post(
        "/admin/tasks/recompute",
        json={"filters": {"market": "HK"}, "bucket_mode": "merchant_market_site"},
    )

    assert response.status_code == 200
    assert response.json() == {"task_id": "task-1", "status": "queued"}
    assert queued == {"filters": {"market": "HK"}, "bucket_mode": "merchant_market_site"}


def test_trigger_recompute_requires_admin(client):
    response = client.post("/admin/tasks/recompute", json={}, headers={"X-Admin-Key": "nope"})

    assert response.status_code == 401


def test_recompute_task_renumbers_through_the_store(monkeypatch):
    store = FakeStore([make_coupon("a", 1), make_coupon("b", 1)])
    monkeypatch.setattr(tasks, "StrapiCouponStore", lambda: store)

    result = tasks.recompute_priorities_task.run(filters={}, bucket_mode="merchant")

    assert result["changed"] == 1
    assert result["message"] == "Coupon priorities have been updated"
    assert "coupons" not in result
    assert store.records["a"].priority == 2
