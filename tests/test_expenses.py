"""
Gastos: CRUD, filtro por mes y resumen mensual
"""
import pytest


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(guest):
    return guest["access_token"]


@pytest.fixture
def categories(client, token):
    return {c["name"]: c for c in client.get("/categories", headers=_auth(token)).json()}


def _expense(client, token, category_id, amount, day, description="Café", sub_category="Cafetería"):
    response = client.post(
        "/expenses",
        json={
            "amount": amount,
            "description": description,
            "category_id": category_id,
            "sub_category": sub_category,
            "expense_date": day,
        },
        headers=_auth(token),
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestExpenses:
    def test_create_and_get(self, client, token, categories):
        created = _expense(client, token, categories["Alimentación"]["id"], 3.5, "2024-02-10")
        assert created["is_automatic"] is False
        fetched = client.get(f"/expenses/{created['id']}", headers=_auth(token))
        assert fetched.status_code == 200
        assert fetched.json()["amount"] == 3.5

    def test_foreign_category_rejected(self, client, token, member):
        other = client.get("/categories", headers=_auth(member["access_token"])).json()[0]
        response = client.post(
            "/expenses",
            json={"amount": 10, "description": "x", "category_id": other["id"]},
            headers=_auth(token),
        )
        assert response.status_code == 400

    def test_amount_must_be_positive(self, client, token, categories):
        response = client.post(
            "/expenses",
            json={"amount": 0, "description": "x", "category_id": categories["Otros"]["id"]},
            headers=_auth(token),
        )
        assert response.status_code == 422

    def test_month_filter(self, client, token, categories):
        food = categories["Alimentación"]["id"]
        _expense(client, token, food, 3.5, "2024-01-31")
        _expense(client, token, food, 4.0, "2024-02-01")
        _expense(client, token, food, 5.0, "2024-02-29")

        february = client.get("/expenses", params={"month": "2024-02"}, headers=_auth(token)).json()
        assert [e["expense_date"] for e in february] == ["2024-02-29", "2024-02-01"]
        assert len(client.get("/expenses", headers=_auth(token)).json()) == 3

    def test_invalid_month(self, client, token):
        assert client.get("/expenses", params={"month": "2024-13"}, headers=_auth(token)).status_code == 400

    def test_update(self, client, token, categories):
        created = _expense(client, token, categories["Alimentación"]["id"], 3.5, "2024-02-10")
        response = client.patch(
            f"/expenses/{created['id']}",
            json={"amount": 4.25, "category_id": categories["Transporte"]["id"]},
            headers=_auth(token),
        )
        assert response.status_code == 200
        assert response.json()["amount"] == 4.25
        assert response.json()["category_id"] == categories["Transporte"]["id"]

    def test_soft_delete(self, client, token, categories):
        created = _expense(client, token, categories["Alimentación"]["id"], 3.5, "2024-02-10")
        assert client.delete(f"/expenses/{created['id']}", headers=_auth(token)).status_code == 204
        assert client.get(f"/expenses/{created['id']}", headers=_auth(token)).status_code == 404
        assert client.get("/expenses", headers=_auth(token)).json() == []

    def test_other_users_expense_is_hidden(self, client, token, member, categories):
        created = _expense(client, token, categories["Alimentación"]["id"], 3.5, "2024-02-10")
        response = client.get(f"/expenses/{created['id']}", headers=_auth(member["access_token"]))
        assert response.status_code == 404


def test_month_summary(client, token, categories):
    food = categories["Alimentación"]["id"]
    transport = categories["Transporte"]["id"]
    _expense(client, token, food, 3.5, "2024-02-10")
    _expense(client, token, food, 6.5, "2024-02-11")
    _expense(client, token, transport, 20, "2024-02-12", description="Taxi", sub_category="Taxi")
    _expense(client, token, transport, 99, "2024-03-01", description="Taxi", sub_category="Taxi")

    response = client.get("/expenses/summary", params={"month": "2024-02"}, headers=_auth(token))

    assert response.status_code == 200
    body = response.json()
    assert body["month"] == "2024-02"
    assert body["total"] == 30.0
    assert [(c["name"], c["total"], c["count"]) for c in body["categories"]] == [
        ("Transporte", 20.0, 1),
        ("Alimentación", 10.0, 2),
    ]
