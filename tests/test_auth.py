from conftest import login, make_user

def test_login_success_redirects_to_next(app, client):
    make_user(app, email="editor@example.com", password="pw")
    resp = client.post("/auth/login", data={"email": "Editor@Example.com", "password": "pw", "next": "/feedback/watched"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/feedback/watched")

def test_login_rejects_bad_password(app, client):
    make_user(app, email="editor@example.com", password="pw")
    resp = client.post("/auth/login", data={"email": "editor@example.com", "password": "nope"})
    assert resp.status_code == 400
    assert "Invalid credentials" in resp.get_data(as_text=True)

def test_login_requires_both_fields(client):
    resp = client.post("/auth/login", data={"email": ""})
    assert resp.status_code == 400

def test_login_blocks_offsite_next(app, client):
    make_user(app, email="editor@example.com", password="pw")
    resp = client.post("/auth/login", data={"email": "editor@example.com", "password": "pw", "next": "//evil.example"})
    assert resp.headers["Location"].endswith("/feedback/")

def test_logout(app, client):
    uid = make_user(app)
    login(client, uid)
    resp = client.post("/auth/logout")
    assert resp.status_code == 302
    assert client.get("/feedback/").status_code == 302
