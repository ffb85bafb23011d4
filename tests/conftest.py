import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

import json
import httpx
import pytest
from feedback_loop import create_app
from feedback_loop.extensions import db
from feedback_loop.models import User, Node, Flagging
from feedback_loop.services import feedback_api


class FakeFeedbackApi:
    """Canned Feedback API: answers by (method, path) and records every request."""

    def __init__(self):
        self.requests = []
        self._responses = {}

    def respond(self, method, path, status=200, json_body=None, content=None, error=None):
        self._responses[(method, path)] = (status, json_body, content, error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append({
            "method": request.method,
            "path": request.url.path,
            "json": body,
            "headers": request.headers,
        })
        status, json_body, content, error = self._responses.get(
            (request.method, request.url.path), (404, {"detail": "no route"}, None, None)
        )
        if error is not None:
            raise error
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=json_body)

    def last(self, method, path):
        for req in reversed(self.requests):
            if req["method"] == method and req["path"] == path:
                return req
        return None


@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
        WTF_CSRF_ENABLED=False,
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def api(app, monkeypatch):
    fake = FakeFeedbackApi()
    http = feedback_api.build_http_client(app.config, transport=httpx.MockTransport(fake.handler))
    monkeypatch.setitem(app.extensions, feedback_api.EXTENSION_KEY, http)
    return fake

@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()


def login(client, user_id: int):
    # Simulate Flask-Login session
    with client.session_transaction() as sess:
        sess["_user_id"] = str(user_id)

def make_user(app, email="editor@example.com", password="secret"):
    with app.app_context():
        u = User(email=email, name="Editor")
        u.set_password(password)
        db.session.add(u)
        db.session.commit()
        return u.id

def make_nodes(app, *nodes):
    """nodes: (nid, title) pairs"""
    with app.app_context():
        for nid, title in nodes:
            db.session.add(Node(nid=nid, title=title, type="info_details"))
        db.session.commit()

def flag(app, uid, *nids, flag_id="watch_content"):
    with app.app_context():
        for nid in nids:
            db.session.add(Flagging(flag_id=flag_id, entity_type="node", entity_id=nid, uid=uid))
        db.session.commit()
