from flask import render_template, request, redirect, url_for, jsonify, flash
from feedback_loop.extensions import limiter
from feedback_loop.services import feedback_api
from feedback_loop.utils.validators import parse_int
from . import bp
from .routes import wants_json


# Only allow internal paths like "/feedback/?page=2" (no external URLs or "//" protocol-relative).
def _safe_next_path(next_raw: str) -> str:
    next_raw = (next_raw or "").strip()
    if next_raw.startswith("/") and not next_raw.startswith("//"):
        return next_raw
    return url_for("feedback.index")


def _submitted():
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form


def _bad_request(message: str, comment_id: int):
    if wants_json():
        return jsonify({"ok": False, "error": message}), 400
    flash(message, "warning")
    return redirect(url_for("feedback.add_tag_form", comment_id=comment_id, next=request.args.get("next")))


@bp.get("/tags/add/<int:comment_id>")
def add_tag_form(comment_id):
    all_tags = feedback_api.fetch_all_tags()
    return render_template(
        "feedback/tag_form.html",
        action="add",
        comment_id=comment_id,
        all_tags=all_tags,
        next=_safe_next_path(request.args.get("next")),
    )


@bp.post("/tags/add/<int:comment_id>")
@limiter.limit("60 per minute")
def add_tag_submit(comment_id):
    data = _submitted()
    try:
        tag_id = parse_int(data.get("tag_id"), minimum=1)
    except ValueError:
        tag_id = None
    if tag_id is None:
        return _bad_request("Please choose a tag.", comment_id)

    all_tags = feedback_api.fetch_all_tags()
    if tag_id not in all_tags:
        return _bad_request("Unknown tag.", comment_id)

    feedback_api.add_tag(comment_id, tag_id)

    if wants_json():
        return jsonify({
            "ok": True,
            "comment_id": comment_id,
            "tag_id": tag_id,
            "tag_name": all_tags[tag_id],
            "dom_id": f"feedback-{comment_id}-tag-{tag_id}",
        })
    flash(f"Added tag “{all_tags[tag_id]}”.", "success")
    return redirect(_safe_next_path(data.get("next") or request.args.get("next")))


@bp.get("/tags/remove/<int:comment_id>/<int:tag_id>/<int:assignment_id>")
def remove_tag_form(comment_id, tag_id, assignment_id):
    all_tags = feedback_api.fetch_all_tags()
    return render_template(
        "feedback/tag_form.html",
        action="remove",
        comment_id=comment_id,
        tag_id=tag_id,
        assignment_id=assignment_id,
        tag_name=all_tags.get(tag_id, str(tag_id)),
        next=_safe_next_path(request.args.get("next")),
    )


@bp.post("/tags/remove/<int:comment_id>/<int:tag_id>/<int:assignment_id>")
@limiter.limit("60 per minute")
def remove_tag_submit(comment_id, tag_id, assignment_id):
    data = _submitted()
    feedback_api.remove_tag(comment_id, tag_id, assignment_id)

    if wants_json():
        return jsonify({
            "ok": True,
            "comment_id": comment_id,
            "tag_id": tag_id,
            "dom_id": f"feedback-{comment_id}-tag-{tag_id}",
        })
    flash("Tag removed.", "success")
    return redirect(_safe_next_path(data.get("next") or request.args.get("next")))
