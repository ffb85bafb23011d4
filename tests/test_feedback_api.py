import logging
import httpx
import pytest
from werkzeug.exceptions import NotFound
from feedback_loop.services import feedback_api


def test_fetch_all_tags_sorted_by_name_and_drops_incomplete(app, api):
    api.respond("GET", "/tag_lookup/", json_body=[
        {"tag_id": 3, "tag_name": "Spam"},
        {"tag_id": 1, "tag_name": "Broken link"},
        {"tag_id": 7, "tag_name": ""},
        {"tag_id": None, "tag_name": "Orphan"},
        {"tag_id": 2, "tag_name": "Outdated"},
    ])
    with app.test_request_context("/"):
        tags = feedback_api.fetch_all_tags(author_id=5)

    assert list(tags.items()) == [(1, "Broken link"), (2, "Outdated"), (3, "Spam")]
    req = api.last("GET", "/tag_lookup/")
    assert req["json"] == {"author_id": 5}


def test_requests_carry_static_headers(app, api):
    api.respond("GET", "/tag_lookup/", json_body=[])
    with app.test_request_context("/"):
        feedback_api.fetch_all_tags()

    headers = api.last("GET", "/tag_lookup/")["headers"]
    assert headers["Content-Type"] == "application/json"
    assert headers["Referer"] == "edit.mass.gov"
    assert headers["Authenticate"] == "test-token"


def test_fetch_all_tags_failure_is_logged_and_not_found(app, api, caplog):
    api.respond("GET", "/tag_lookup/", status=500, json_body={"detail": "boom"})
    with app.test_request_context("/"), caplog.at_level(logging.ERROR):
        with pytest.raises(NotFound):
            feedback_api.fetch_all_tags()
    assert "GET http://feedback-api.test/tag_lookup/" in caplog.text
    assert "boom" in caplog.text


def test_transport_error_is_not_found(app, api):
    api.respond("GET", "/tag_lookup/", error=httpx.ConnectError("connection refused"))
    with app.test_request_context("/"):
        with pytest.raises(NotFound):
            feedback_api.fetch_all_tags()


def test_fetch_labels_returns_decoded_list(app, api):
    api.respond("GET", "/labels/", json_body=[{"label_id": 1, "label_name": "Urgent"}])
    with app.test_request_context("/"):
        labels = feedback_api.fetch_labels(author_id=9)
    assert labels == [{"label_id": 1, "label_name": "Urgent"}]
    assert api.last("GET", "/labels/")["json"] == {"author_id": 9}


@pytest.mark.parametrize("ui_page, api_page", [(None, 1), (0, 1), (1, 2), (4, 5)])
def test_fetch_feedback_translates_zero_based_page(app, api, ui_page, api_page):
    api.respond("GET", "/feedback/", json_body={"results": [], "total": 0})
    params = {} if ui_page is None else {"page": ui_page}
    with app.test_request_context("/"):
        feedback_api.fetch_feedback(params, flagged_content=lambda: [])
    assert api.last("GET", "/feedback/")["json"]["page"] == api_page


def test_fetch_feedback_request_body(app, api):
    api.respond("GET", "/feedback/", json_body={"results": [], "total": 0})
    with app.test_request_context("/"):
        feedback_api.fetch_feedback(
            {"org_id": 4, "desc": False, "watch_content": 0},
            flagged_content=lambda: [1, 2],
        )
    body = api.last("GET", "/feedback/")["json"]
    assert body["per_page"] == 10
    assert body["order_by"] == "submit_date"
    assert body["desc"] is False
    assert body["org_id"] == 4
    assert "watch_content" not in body
    # not watching: no node scoping
    assert "node_id" not in body


def test_fetch_feedback_scopes_to_watched_content(app, api):
    api.respond("GET", "/feedback/", json_body={"results": [], "total": 0})
    with app.test_request_context("/"):
        feedback_api.fetch_feedback({"node_id": [2, 5], "watch_content": 1}, flagged_content=lambda: [1, 2, 3])
    assert api.last("GET", "/feedback/")["json"]["node_id"] == [2]


def test_fetch_feedback_adds_paging_metadata_without_overriding(app, api):
    api.respond("GET", "/feedback/", json_body={
        "results": [{"id": 11}],
        "total": 1,
        "per_page": 25,
    })
    with app.test_request_context("/"):
        data = feedback_api.fetch_feedback({}, flagged_content=lambda: [])
    assert data["results"] == [{"id": 11}]
    assert data["total"] == 1
    assert data["per_page"] == 25
    assert data["is_watching_content"] is True


def test_fetch_feedback_failure_returns_empty_result(app, api, caplog):
    api.respond("GET", "/feedback/", status=502, json_body={"detail": "upstream"})
    with app.test_request_context("/"), caplog.at_level(logging.ERROR):
        data = feedback_api.fetch_feedback({"node_id": [3]}, flagged_content=lambda: [])
    assert data == {"results": [], "total": 0, "per_page": 10, "is_watching_content": True}
    assert "PARAMS" in caplog.text


def test_fetch_feedback_csv_returns_raw_body(app, api):
    api.respond("GET", "/feedback/", content=b"id,text\n1,hello\n")
    with app.test_request_context("/"):
        body = feedback_api.fetch_feedback({"file_type": "csv"}, flagged_content=lambda: [])
    assert body == b"id,text\n1,hello\n"
    assert api.last("GET", "/feedback/")["json"]["file_type"] == "csv"


def test_add_tag_posts_assignment(app, api):
    api.respond("POST", "/tags/", json_body={"ok": True})
    with app.test_request_context("/"):
        feedback_api.add_tag(101, 3, author_id=7)
    assert api.last("POST", "/tags/")["json"] == {"comment_id": 101, "tag_id": 3, "author_id": 7}


def test_remove_tag_sends_assignment_id(app, api):
    api.respond("DELETE", "/tags/", json_body={"ok": True})
    with app.test_request_context("/"):
        feedback_api.remove_tag(101, 3, 555, author_id=7)
    assert api.last("DELETE", "/tags/")["json"] == {"comment_id": 101, "tag_id": 3, "id": 555, "author_id": 7}


@pytest.mark.parametrize("method, call", [
    ("POST", lambda: feedback_api.add_tag(1, 2)),
    ("DELETE", lambda: feedback_api.remove_tag(1, 2, 3)),
])
def test_tag_changes_surface_failures_as_not_found(app, api, method, call):
    api.respond(method, "/tags/", status=400, json_body={"detail": "bad"})
    with app.test_request_context("/"):
        with pytest.raises(NotFound):
            call()
