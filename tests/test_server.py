import pytest

from memory_game.server import create_app


@pytest.fixture
def client(controller):
    app = create_app(controller)
    app.config["TESTING"] = True
    return app.test_client()


def _login(client):
    return client.post("/login", json={"name": "Ann", "email": "a@x.com"})


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_login_rejects_blank_fields(client, store):
    r = client.post("/login", json={"name": "  ", "email": "a@x.com"})
    assert r.status_code == 400
    assert r.get_json()["status"] == "error"
    assert store.get_profile() is None


def test_login_trims_and_shows_dashboard(client, store):
    r = client.post("/login", json={"name": " Ann ", "email": "a@x.com "})
    data = r.get_json()
    assert r.status_code == 200
    assert data["status"] == "ok"
    assert data["view"] == "dashboard"
    assert data["user"]["email"] == "a@x.com"
    assert store.get_profile_by_email("a@x.com").name == "Ann"


def test_start_and_click(client):
    _login(client)
    data = client.post("/start").get_json()
    assert data["phase"] == "playing"
    assert data["session"]["gameNumber"] == 1
    assert len(data["board"]) == 16
    assert all(t["icon"] is None for t in data["board"])

    data = client.post("/click", json={"index": 3}).get_json()
    assert data["board"][3]["is_flipped"] is True
    assert data["board"][3]["icon"] is not None
    assert data["selected"] == [3]


def test_click_requires_integer_index(client):
    _login(client)
    client.post("/start")
    r = client.post("/click", json={"index": "three"})
    assert r.status_code == 400
    r = client.post("/click", json={})
    assert r.status_code == 400


def test_start_without_login_is_ignored(client):
    data = client.post("/start").get_json()
    assert data["status"] == "ok"
    assert data["view"] == "login"
    assert data["board"] == []


def test_stop_flow(client, scheduler):
    _login(client)
    client.post("/start")
    scheduler.advance(2)

    data = client.post("/stop").get_json()
    assert data["stop_pending"] is True
    data = client.post("/stop/cancel").get_json()
    assert data["stop_pending"] is False
    assert data["phase"] == "playing"

    client.post("/stop")
    data = client.post("/stop/confirm").get_json()
    assert data["view"] == "dashboard"
    assert data["user"]["stats"] == {"played": 1, "completed": 0, "lost": 1}
    assert data["user"]["sessions"][0]["status"] == "lost"
    assert data["user"]["sessions"][0]["duration"] == 2


def test_logout(client, store):
    _login(client)
    client.post("/start")
    data = client.post("/logout").get_json()
    assert data["view"] == "login"
    assert data["user"] is None
    assert store.get_current_session() is None


def test_state(client):
    data = client.get("/state").get_json()
    assert data["status"] == "ok"
    assert data["view"] == "login"
    assert data["timer"]["display"] == "00:00"


def test_login_rejects_non_object_body(client, store):
    r = client.post("/login", json=["Ann", "a@x.com"])
    assert r.status_code == 400
    assert r.get_json()["status"] == "error"
    r = client.post("/login", json="Ann")
    assert r.status_code == 400
    assert store.get_profile() is None


def test_click_rejects_non_integer_index(client):
    _login(client)
    client.post("/start")
    for body in ({"index": True}, {"index": 1.7}, {"index": "1"}, [1]):
        r = client.post("/click", json=body)
        assert r.status_code == 400
        assert r.get_json()["status"] == "error"
    data = client.get("/state").get_json()
    assert data["selected"] == []
    assert not any(t["is_flipped"] for t in data["board"])
