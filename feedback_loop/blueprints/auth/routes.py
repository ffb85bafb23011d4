from flask import render_template, request, redirect, url_for
from flask_login import login_user, logout_user, current_user
from sqlalchemy import func
from feedback_loop.extensions import db, limiter
from feedback_loop.models.user import User
from . import bp


def _login_email_scope():
    email = (request.form.get("email") or "").strip().lower()
    # Keep a stable scope even if email is blank
    return f"login-email:{email or 'missing'}"

# Only allow internal paths like "/feedback/" (no external URLs or "//" protocol-relative).
def _safe_next_path(next_raw: str) -> str:
    next_raw = (next_raw or "").strip()
    if next_raw.startswith("/") and not next_raw.startswith("//"):
        return next_raw
    return url_for("feedback.index")

@bp.get("/login")
def login_get():
    if current_user.is_authenticated:
        return redirect(_safe_next_path(request.args.get("next")))
    return render_template("auth/login.html", next=request.args.get("next") or "")

@bp.post("/login")
@limiter.limit("10 per minute; 100 per hour")              # per-IP
@limiter.limit("5 per minute; 20 per hour", key_func=_login_email_scope)  # per-account
def login_post():
    email = (request.form.get("email") or "").strip()
    password = request.form.get("password") or ""
    next_raw = request.form.get("next") or request.args.get("next")

    if not email or not password:
        return render_template("auth/login.html", error="Email and password are required", next=next_raw or ""), 400

    user = db.session.execute(
        db.select(User).where(func.lower(User.email) == func.lower(email))
    ).scalar_one_or_none()

    if not user or not user.check_password(password) or not user.is_active:
        return render_template("auth/login.html", error="Invalid credentials", next=next_raw or ""), 400

    login_user(user)
    return redirect(_safe_next_path(next_raw))

@bp.route("/logout", methods=["GET", "POST"])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return redirect(url_for("auth.login_get"))
