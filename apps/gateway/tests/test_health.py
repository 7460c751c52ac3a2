"""健康检查测试 -- /health 与 /ready"""

from unittest.mock import AsyncMock

from httpx import ASGITransport, AsyncClient

from taskdesk.core.exceptions import DependencyFailureError
from taskdesk.gateway.main import create_app


class TestHealth:
    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_liveness_needs_no_token(self, client):
        assert (await client.get("/health")).status_code == 200


class TestReadiness:
    async def test_ready(self, client):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ready",
            "backend": "sqlite",
            "checks": {"task_store": "ok"},
        }

    async def test_store_unreachable(self, client, store_group, monkeypatch):
        monkeypatch.setattr(
            store_group.task_store,
            "ping",
            AsyncMock(side_effect=DependencyFailureError("task_store", OSError("disk gone"))),
        )
        resp = await client.get("/ready")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "not_ready"
        assert body["checks"]["task_store"].startswith("error:")

    async def test_store_not_initialized(self):
        """未经 lifespan 装配的 app 报告 not_ready"""
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get("/ready")
        assert resp.status_code == 503
        assert resp.json() == {
            "status": "not_ready",
            "backend": None,
            "checks": {"task_store": "error: store not initialized"},
        }
