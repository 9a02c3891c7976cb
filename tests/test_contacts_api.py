"""Emergency contacts API tests."""

from fakes import auth, new_user_id


def _add(client, user_id, name, is_primary=False):
    r = client.post(
        "/contacts",
        headers=auth(user_id),
        json={"name": name, "phone": "+91 98765 43210", "relationship": "friend", "is_primary": is_primary},
    )
    assert r.status_code == 201
    return r.json()


def _primaries(client, user_id):
    return [c["id"] for c in client.get("/contacts", headers=auth(user_id)).json() if c["is_primary"]]


def test_add_and_list_primary_first(client):
    user_id = new_user_id()
    a = _add(client, user_id, "Asha")
    b = _add(client, user_id, "Bilal", is_primary=True)

    r = client.get("/contacts", headers=auth(user_id))
    assert r.status_code == 200
    assert [c["id"] for c in r.json()] == [b["id"], a["id"]]
    assert b["is_primary"] is True


def test_only_one_primary_at_a_time(client):
    user_id = new_user_id()
    a = _add(client, user_id, "Asha", is_primary=True)
    b = _add(client, user_id, "Bilal")
    c = _add(client, user_id, "Chen", is_primary=True)
    assert _primaries(client, user_id) == [c["id"]]

    r = client.post(f"/contacts/{b['id']}/primary", headers=auth(user_id))
    assert r.status_code == 200
    assert r.json()["is_primary"] is True
    assert _primaries(client, user_id) == [b["id"]]

    client.patch(f"/contacts/{a['id']}", headers=auth(user_id), json={"is_primary": True})
    assert _primaries(client, user_id) == [a["id"]]


def test_primary_is_per_user(client):
    alice, bob = new_user_id(), new_user_id()
    mine = _add(client, alice, "Asha", is_primary=True)
    _add(client, bob, "Bilal", is_primary=True)
    assert _primaries(client, alice) == [mine["id"]]


def test_update_and_delete(client):
    user_id = new_user_id()
    contact = _add(client, user_id, "Asha")

    r = client.patch(f"/contacts/{contact['id']}", headers=auth(user_id), json={"name": "  Asha K  "})
    assert r.status_code == 200
    assert r.json()["name"] == "Asha K"
    assert r.json()["phone"] == "+91 98765 43210"

    assert client.delete(f"/contacts/{contact['id']}", headers=auth(user_id)).status_code == 204
    assert client.get("/contacts", headers=auth(user_id)).json() == []
    assert client.delete(f"/contacts/{contact['id']}", headers=auth(user_id)).status_code == 404


def test_only_owner_can_modify(client):
    contact = _add(client, new_user_id(), "Asha")
    stranger = new_user_id()

    assert client.patch(f"/contacts/{contact['id']}", headers=auth(stranger), json={"name": "X"}).status_code == 403
    assert client.post(f"/contacts/{contact['id']}/primary", headers=auth(stranger)).status_code == 403
    assert client.delete(f"/contacts/{contact['id']}", headers=auth(stranger)).status_code == 403
