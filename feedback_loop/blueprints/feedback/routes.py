from flask import render_template, request, redirect, url_for, abort, current_app, Response, jsonify
from flask_login import current_user
from feedback_loop.extensions import limiter
from feedback_loop.services import feedback_api, watched_content
from feedback_loop.services.feedback_api import SORTING_VARIANTS
from feedback_loop.services.feedback_table import COLUMNS, build_feedback_table, build_pager
from feedback_loop.utils.validators import parse_int, parse_int_list, is_valid_date
from . import bp

_COLUMN_NAMES = {name for name, *_ in COLUMNS}
# Query args the dashboard understands; only these are carried into pager and CSV links
FILTER_KEYS = ("org_id", "node_id", "author_id", "date_from", "date_to", "tag_id",
               "info_found", "sort_by", "watch_content", "limit_fields")


def wants_json() -> bool:
    accept = (request.headers.get("Accept") or "").lower()
    return "application/json" in accept or request.is_json


@bp.before_request
def _require_login_feedback():
    if current_user.is_authenticated:
        return None
    if wants_json():
        abort(401)
    return redirect(url_for("auth.login_get", next=request.full_path))


def node_url(nid) -> str:
    return current_app.config["NODE_URL_PATTERN"].format(nid=nid)


def _feedback_filters(args) -> dict:
    """Translate dashboard query args into Feedback API params. Malformed input -> 400."""
    params = {}
    try:
        for key in ("org_id", "author_id", "tag_id"):
            val = parse_int(args.get(key), minimum=1)
            if val is not None:
                params[key] = val

        node_ids = parse_int_list(args.getlist("node_id"))
        if node_ids:
            params["node_id"] = node_ids

        info_found = (args.get("info_found") or "").strip()
        if info_found:
            if info_found not in ("0", "1"):
                raise ValueError("info_found must be 0 or 1")
            params["info_found"] = info_found == "1"

        sort_by = parse_int(args.get("sort_by"), minimum=0)
        if sort_by is None:
            sort_by = 0
        if sort_by not in SORTING_VARIANTS:
            raise ValueError("unknown sort_by")
        params["desc"] = SORTING_VARIANTS[sort_by]["desc"]

        page = parse_int(args.get("page"), minimum=0)
        if page is not None:
            params["page"] = page

        # The filter form sends a hidden 0 before the checkbox; the last value wins
        watch_values = args.getlist("watch_content")
        params["watch_content"] = (parse_int(watch_values[-1]) or 0) if watch_values else 1
    except ValueError:
        abort(400, description="Invalid feedback filter")

    for key in ("date_from", "date_to"):
        val = (args.get(key) or "").strip()
        if val:
            if not is_valid_date(val):
                abort(400, description=f"{key} must be YYYY-MM-DD")
            params[key] = val
    return params


def _link_parameters(args) -> dict:
    return {k: args.getlist(k) for k in FILTER_KEYS if k in args}


def _limit_fields(args) -> list:
    return [f for f in args.getlist("limit_fields") if f in _COLUMN_NAMES]


def _flagged_loader(params: dict):
    """Load watched content once; the route also needs it for the empty state."""
    if params.get("watch_content") != 1:
        return None, lambda: []
    flagged = watched_content.fetch_flagged_content()
    return flagged, lambda: flagged


@bp.get("/")
def index():
    params = _feedback_filters(request.args)
    limit_fields = _limit_fields(request.args)

    all_tags = feedback_api.fetch_all_tags()
    flagged, loader = _flagged_loader(params)
    response = feedback_api.fetch_feedback(params, flagged_content=loader)

    results = response.get("results") or []
    is_watching_content = bool(response.get("is_watching_content", True)) and flagged != []
    node_titles = watched_content.load_node_titles(r.get("node_id") for r in results if r)
    table = build_feedback_table(
        results,
        all_tags,
        is_watching_content=is_watching_content,
        limit_fields=limit_fields,
        node_titles=node_titles,
        node_url=node_url,
    )

    per_page = response.get("per_page") or current_app.config["FEEDBACK_PER_PAGE"]
    parameters = _link_parameters(request.args)
    pager = build_pager(response.get("total") or 0, per_page, params.get("page") or 0, parameters=parameters)

    if wants_json():
        return jsonify({
            "results": results,
            "total": response.get("total") or 0,
            "per_page": per_page,
            "page": pager.current,
            "is_watching_content": is_watching_content,
        })

    return render_template(
        "feedback/index.html",
        table=table,
        pager=pager,
        all_tags=all_tags,
        params=params,
        args=request.args,
        filter_args=parameters,
        sorting_variants=SORTING_VARIANTS,
    )


@bp.get("/export.csv")
@limiter.limit("30 per minute")
def export_csv():
    params = _feedback_filters(request.args)
    params["file_type"] = "csv"
    _, loader = _flagged_loader(params)
    body = feedback_api.fetch_feedback(params, flagged_content=loader)
    if not isinstance(body, (bytes, bytearray)):
        # API failed; fetch_feedback already logged it
        body = b""
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=feedback.csv"},
    )


@bp.get("/watched")
def watched():
    order = "DESC" if (request.args.get("order") or "").lower() == "desc" else "ASC"
    nids = watched_content.fetch_flagged_content(title_order=order)
    titles = watched_content.load_node_titles(nids)
    items = [
        {
            "nid": nid,
            "title": titles.get(nid),
            "url": node_url(nid) if nid in titles else None,
            "feedback_url": url_for("feedback.index", node_id=nid),
        }
        for nid in nids
    ]
    return render_template("feedback/watched.html", items=items, order=order)
