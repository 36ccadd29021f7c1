"""
Categorías, subcategorías y el feed en tiempo real
"""
import uuid

import pytest
from fastapi import WebSocketDisconnect
from sqlmodel import Session, select

from gastos_hormigas.models.category import Subcategory
from gastos_hormigas.routers import categories as categories_router
from gastos_hormigas.services.categories import DEFAULT_CATEGORIES


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _create(client, token, name="Mascotas", **extra):
    response = client.post("/categories", json={"name": name, **extra}, headers=_auth(token))
    assert response.status_code == 201, response.text
    return response.json()


class TestListing:
    def test_defaults_after_first_login(self, client, guest):
        response = client.get("/categories", headers=_auth(guest["access_token"]))
        assert response.status_code == 200
        body = response.json()
        names = [c["name"] for c in body]
        assert len(body) == len(DEFAULT_CATEGORIES)
        assert names == sorted(names)
        assert all(c["is_default"] for c in body)
        servicios = next(c for c in body if c["name"] == "Servicios")
        assert [s["name"] for s in servicios["subcategories"]] == [
            "Electricidad", "Agua", "Internet", "Teléfono", "Gasto Fijo",
        ]

    def test_requires_profile(self, client):
        assert client.get("/categories").status_code == 401


class TestMutations:
    def test_create_with_default_style(self, client, guest):
        created = _create(client, guest["access_token"])
        assert created["icon"] == "Tag"
        assert created["color"] == "#607D8B"
        assert created["is_default"] is False
        assert created["subcategories"] == []

    def test_get_is_owner_scoped(self, client, guest, member):
        created = _create(client, guest["access_token"])
        assert client.get(f"/categories/{created['id']}", headers=_auth(guest["access_token"])).status_code == 200
        assert client.get(f"/categories/{created['id']}", headers=_auth(member["access_token"])).status_code == 404
        assert client.delete(f"/categories/{created['id']}", headers=_auth(member["access_token"])).status_code == 404

    def test_subcategories(self, client, guest):
        token = guest["access_token"]
        category = _create(client, token)
        sub = client.post(
            f"/categories/{category['id']}/subcategories",
            json={"name": "Veterinario"},
            headers=_auth(token),
        )
        assert sub.status_code == 201
        fetched = client.get(f"/categories/{category['id']}", headers=_auth(token)).json()
        assert [s["name"] for s in fetched["subcategories"]] == ["Veterinario"]

        deleted = client.delete(
            f"/categories/{category['id']}/subcategories/{sub.json()['id']}",
            headers=_auth(token),
        )
        assert deleted.status_code == 204
        assert client.get(f"/categories/{category['id']}", headers=_auth(token)).json()["subcategories"] == []

    def test_subcategories_keep_insertion_order(self, client, guest):
        token = guest["access_token"]
        category = _create(client, token)
        for name in ["Zeta", "Alfa", "Medio"]:
            client.post(f"/categories/{category['id']}/subcategories", json={"name": name}, headers=_auth(token))

        fetched = client.get(f"/categories/{category['id']}", headers=_auth(token)).json()
        assert [s["name"] for s in fetched["subcategories"]] == ["Zeta", "Alfa", "Medio"]

    def test_delete_cascades_to_subcategories(self, client, guest, engine):
        token = guest["access_token"]
        category = _create(client, token)
        client.post(f"/categories/{category['id']}/subcategories", json={"name": "Comida"}, headers=_auth(token))

        assert client.delete(f"/categories/{category['id']}", headers=_auth(token)).status_code == 204

        with Session(engine) as session:
            remaining = session.exec(
                select(Subcategory).where(Subcategory.category_id == uuid.UUID(category["id"]))
            ).all()
        assert remaining == []

    def test_budget_and_style(self, client, guest):
        token = guest["access_token"]
        category = _create(client, token)

        budget = client.put(f"/categories/{category['id']}/budget", json={"budget": 150.5}, headers=_auth(token))
        assert budget.status_code == 200
        assert budget.json()["budget"] == 150.5

        cleared = client.put(f"/categories/{category['id']}/budget", json={"budget": None}, headers=_auth(token))
        assert cleared.json()["budget"] is None

        style = client.put(
            f"/categories/{category['id']}/style",
            json={"icon": "Dog", "color": "#123456"},
            headers=_auth(token),
        )
        assert style.json()["icon"] == "Dog"
        assert style.json()["color"] == "#123456"

    def test_negative_budget_rejected(self, client, guest):
        category = _create(client, guest["access_token"])
        response = client.put(
            f"/categories/{category['id']}/budget",
            json={"budget": -1},
            headers=_auth(guest["access_token"]),
        )
        assert response.status_code == 422


class TestFeed:
    def test_snapshot_then_live_updates(self, client, guest):
        token = guest["access_token"]
        with client.websocket_connect(f"/categories/ws?token={token}") as ws:
            first = ws.receive_json()
            assert len(first) == len(DEFAULT_CATEGORIES)

            created = _create(client, token, name="Ahorro")
            after_create = ws.receive_json()
            assert len(after_create) == len(DEFAULT_CATEGORIES) + 1
            assert created["id"] in [c["id"] for c in after_create]

            client.post(
                f"/categories/{created['id']}/subcategories",
                json={"name": "Banco"},
                headers=_auth(token),
            )
            after_sub = ws.receive_json()
            ahorro = next(c for c in after_sub if c["id"] == created["id"])
            assert [s["name"] for s in ahorro["subcategories"]] == ["Banco"]

    def test_rejects_invalid_token(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/categories/ws?token=not-a-token"):
                pass

    def test_database_work_runs_off_the_event_loop(self, client, guest, monkeypatch):
        offloaded = []
        real_run = categories_router.run_in_threadpool

        async def recording_run(func, *args, **kwargs):
            offloaded.append(func.__name__)
            return await real_run(func, *args, **kwargs)

        monkeypatch.setattr(categories_router, "run_in_threadpool", recording_run)
        token = guest["access_token"]
        with client.websocket_connect(f"/categories/ws?token={token}") as ws:
            ws.receive_json()
            _create(client, token, name="Ahorro")
            ws.receive_json()

        assert offloaded == ["_registered_user", "_snapshot", "_snapshot"]
