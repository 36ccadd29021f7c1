import uuid

from sqlmodel import Session, select

from gastos_hormigas.models.category import Category


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_guest_profile_defaults(client, guest):
    body = client.get("/users/me", headers=_auth(guest["access_token"])).json()
    assert body["display_name"] == "Usuario"
    assert body["email"] is None
    assert body["currency"] == "USD"
    assert body["theme"] == "system"
    assert body["language"] == "es"


def test_member_display_name_from_email(client, member):
    body = client.get("/users/me", headers=_auth(member["access_token"])).json()
    assert body["display_name"] == "ana"
    assert body["email"] == "ana@example.com"


def test_update_preferences(client, member):
    response = client.patch(
        "/users/me",
        json={"currency": "eur", "theme": "dark", "language": "en", "display_name": "  Ana María "},
        headers=_auth(member["access_token"]),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["currency"] == "EUR"
    assert body["theme"] == "dark"
    assert body["language"] == "en"
    assert body["display_name"] == "Ana María"


def test_rejects_unsupported_values(client, member):
    headers = _auth(member["access_token"])
    assert client.patch("/users/me", json={"currency": "XYZ"}, headers=headers).status_code == 400
    assert client.patch("/users/me", json={"theme": "neon"}, headers=headers).status_code == 400
    assert client.patch("/users/me", json={"language": "fr"}, headers=headers).status_code == 400
    assert client.patch("/users/me", json={}, headers=headers).status_code == 400


def test_delete_account_removes_everything(client, member, engine):
    headers = _auth(member["access_token"])
    assert client.delete("/users/me", headers=headers).status_code == 204

    assert client.get("/users/me", headers=headers).status_code == 401
    with Session(engine) as session:
        owned = session.exec(
            select(Category).where(Category.user_id == uuid.UUID(member["user_id"]))
        ).all()
    assert owned == []
