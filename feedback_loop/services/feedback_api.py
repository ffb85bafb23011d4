"""
Client for the external Feedback API.

All calls go through one ``httpx.Client`` per Flask app (built in
``init_app`` and kept in ``app.extensions``). Requests and responses are
JSON; there are no retries. Tag operations surface failures as 404, while
``fetch_feedback`` falls back to an empty result set.
"""
import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import httpx
from flask import current_app
from flask_login import current_user
from werkzeug.exceptions import NotFound

from feedback_loop.utils.validators import coerce_id
from . import watched_content

EXTENSION_KEY = "feedback_api"

API_ENDPOINTS = {
    "feedback": "feedback/",
    "tags": "tags/",
    "tag_lookup": "tag_lookup/",
    "labels": "labels/",
}

CONTENT_TYPE = "application/json"
REFERER = "edit.mass.gov"

# "Sort by" choices exposed in the feedback filters
SORTING_VARIANTS = {
    0: {"order_by": "submit_date", "desc": True},
    1: {"order_by": "submit_date", "desc": False},
}


class FeedbackApiError(Exception):
    """A request to the Feedback API failed (transport error or non-2xx)."""

    def __init__(self, method: str, url: str, status_code: Optional[int] = None, body: str = ""):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        detail = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"{method} {url} failed{detail}")


def build_http_client(config, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    return httpx.Client(
        base_url=config["FEEDBACK_API_BASE_URL"],
        headers={
            "Content-Type": CONTENT_TYPE,
            "Referer": REFERER,
            "Authenticate": config.get("FEEDBACK_API_AUTHENTICATE_HEADER") or "",
        },
        timeout=float(config.get("FEEDBACK_API_TIMEOUT") or 10.0),
        transport=transport,
    )


def init_app(app, transport: Optional[httpx.BaseTransport] = None) -> None:
    app.extensions[EXTENSION_KEY] = build_http_client(app.config, transport=transport)


def _http() -> httpx.Client:
    return current_app.extensions[EXTENSION_KEY]


def _author_id(author_id: Optional[int]) -> Optional[int]:
    if author_id is not None:
        return author_id
    if getattr(current_user, "is_authenticated", False):
        return current_user.id
    return None


def _request(method: str, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
    client = _http()
    try:
        # GET and DELETE carry JSON bodies too; the API reads filters from them
        response = client.request(method, endpoint, json=payload)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FeedbackApiError(method, str(e.request.url), e.response.status_code, e.response.text) from e
    except httpx.HTTPError as e:
        raise FeedbackApiError(method, str(client.base_url.join(endpoint)), body=str(e)) from e
    return response


def handle_request_exception(err: FeedbackApiError):
    """Log the failed request and answer the caller with a 404."""
    current_app.logger.error("%s %s: %s", err.method, err.url, err.body)
    raise NotFound()


def fetch_all_tags(author_id: Optional[int] = None) -> Dict[Any, str]:
    """
    Return every tag known to the API as {tag_id: tag_name}, ordered by name.
    Entries without an id or a name are dropped.
    """
    try:
        response = _request("GET", API_ENDPOINTS["tag_lookup"], {"author_id": _author_id(author_id)})
    except FeedbackApiError as e:
        handle_request_exception(e)

    tags = {}
    for tag in response.json() or []:
        if tag.get("tag_id") and tag.get("tag_name"):
            tags[coerce_id(tag["tag_id"])] = tag["tag_name"]
    return dict(sorted(tags.items(), key=lambda item: item[1]))


def fetch_labels(author_id: Optional[int] = None) -> List[Dict[str, Any]]:
    try:
        response = _request("GET", API_ENDPOINTS["labels"], {"author_id": _author_id(author_id)})
    except FeedbackApiError as e:
        handle_request_exception(e)
    return response.json() or []


def _wants_watched_content(params: Dict[str, Any]) -> bool:
    try:
        return int(params.get("watch_content") or 0) == 1
    except (TypeError, ValueError):
        return False


def _as_list(value) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def scope_to_watched_content(params: Dict[str, Any], load_flagged: Callable[[], Iterable]) -> Dict[str, Any]:
    """
    Narrow the node filter to the content the reviewer watches.

    Only applies when ``watch_content`` is 1. Without a node filter every
    watched node is requested (org/author filters are then narrowed by it);
    with one, ids that are not watched are dropped, keeping caller order.
    """
    scoped = dict(params)
    if not _wants_watched_content(scoped):
        return scoped

    flagged = list(load_flagged())
    if scoped.get("node_id") is None:
        scoped["node_id"] = flagged
        return scoped

    watched = {coerce_id(nid) for nid in flagged}
    scoped["node_id"] = [nid for nid in _as_list(scoped["node_id"]) if coerce_id(nid) in watched]
    return scoped


def _empty_result(per_page: int) -> Dict[str, Any]:
    return {
        "results": [],
        "total": 0,
        "per_page": per_page,
        "is_watching_content": True,
    }


def fetch_feedback(feedback_api_params: Optional[Dict[str, Any]] = None,
                   flagged_content: Optional[Callable[[], Iterable]] = None) -> Union[Dict[str, Any], bytes]:
    """
    Fetch one page of feedback.

    Accepted params: org_id, node_id, author_id, date_from, date_to, tag_id,
    info_found, desc, page (0-based, as the pager counts), watch_content,
    file_type. With file_type "csv" the raw CSV body is returned.
    """
    params = dict(feedback_api_params or {})
    per_page = int(current_app.config["FEEDBACK_PER_PAGE"])
    params["per_page"] = per_page
    # The pager is 0 based, but the API is 1 based
    if params.get("page") is None:
        params["page"] = 1
    else:
        params["page"] = max(int(params["page"]), 0) + 1

    if flagged_content is None:
        flagged_content = watched_content.fetch_flagged_content
    params = scope_to_watched_content(params, flagged_content)

    # Always ordered by submit date; only the direction is user-selectable
    params["order_by"] = "submit_date"
    payload = {k: v for k, v in params.items() if k != "watch_content"}

    try:
        response = _request("GET", API_ENDPOINTS["feedback"], payload)
    except FeedbackApiError:
        current_app.logger.error(
            "The Feedback API returned an exception when a request with the following params was sent. PARAMS = %s",
            json.dumps(params, sort_keys=True, default=str),
        )
        return _empty_result(per_page)

    if params.get("file_type") == "csv":
        return response.content

    data = {"per_page": per_page, "is_watching_content": True}
    data.update(response.json())
    return data


def add_tag(comment_id: int, tag_id: int, author_id: Optional[int] = None) -> None:
    author = _author_id(author_id)
    try:
        _request("POST", API_ENDPOINTS["tags"], {
            "comment_id": comment_id,
            "tag_id": tag_id,
            "author_id": author,
        })
    except FeedbackApiError as e:
        handle_request_exception(e)
    current_app.logger.info(
        "feedback_tag_added",
        extra={"event": "feedback_tag_added", "comment_id": comment_id, "tag_id": tag_id, "author_id": author},
    )


def remove_tag(comment_id: int, tag_id: int, assignment_id: int, author_id: Optional[int] = None) -> None:
    """``assignment_id`` is the per-feedback id of the tag assignment."""
    author = _author_id(author_id)
    try:
        _request("DELETE", API_ENDPOINTS["tags"], {
            "comment_id": comment_id,
            "tag_id": tag_id,
            "id": assignment_id,
            "author_id": author,
        })
    except FeedbackApiError as e:
        handle_request_exception(e)
    current_app.logger.info(
        "feedback_tag_removed",
        extra={"event": "feedback_tag_removed", "comment_id": comment_id, "tag_id": tag_id,
               "assignment_id": assignment_id, "author_id": author},
    )
