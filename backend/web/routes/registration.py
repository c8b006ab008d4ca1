"""
Registration routes: mint participant/admin identities and set the `id` cookie.

Why:
    Registration is the only write path into the session store. Each call
    creates exactly one immutable record and hands the browser its identity
    token. Logout only drops the cookie; records stay in the store.

Validation:
    - `name`, `school`: non-empty after trimming, at most 200 characters
    - `grade`: integer in 0..255
"""
from __future__ import annotations

from typing import Mapping, Optional, Tuple
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from backend.identity_access.domain import MAX_GRADE
from backend.identity_access.stores import SessionStoreError
from backend.identity_access.tokens import encode

from backend.web.auth_utils import clear_identity_cookie, set_identity_cookie
from backend.web.routing import private_response

registration_router = APIRouter(tags=["Registration"])
logger = logging.getLogger("mamlonline.web")

MAX_TEXT_LEN = 200


def _bad_request(detail: str) -> JSONResponse:
    return private_response({"error": "bad_request", "detail": detail}, status_code=400)


def _text_field(form: Mapping, key: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (value, error_detail) for a required short text field."""
    raw = form.get(key)
    if not isinstance(raw, str):
        return None, f"missing_{key}"
    value = raw.strip()
    if not value:
        return None, f"missing_{key}"
    if len(value) > MAX_TEXT_LEN:
        return None, f"{key}_too_long"
    return value, None


def _grade_field(form: Mapping) -> Tuple[Optional[int], Optional[str]]:
    raw = form.get("grade")
    if not isinstance(raw, str) or not raw.strip():
        return None, "missing_grade"
    raw = raw.strip()
    if not raw.isascii() or not raw.isdigit():
        return None, "invalid_grade"
    significant = raw.lstrip("0") or "0"
    if len(significant) > len(str(MAX_GRADE)):
        return None, "invalid_grade"
    grade = int(significant)
    if grade > MAX_GRADE:
        return None, "invalid_grade"
    return grade, None


def _unavailable(exc: SessionStoreError) -> JSONResponse:
    logger.error("Registration failed: %s", exc.__class__.__name__)
    return private_response({"error": "unavailable"}, status_code=503)


@registration_router.post("/api/participants")
async def register_participant(request: Request):
    """Register a participant and log them in.

    Form fields: name, school, grade.
    Response: 201 with the participant view model and `Set-Cookie: id=P…`.
    """
    form = await request.form()
    name, err = _text_field(form, "name")
    if err:
        return _bad_request(err)
    school, err = _text_field(form, "school")
    if err:
        return _bad_request(err)
    grade, err = _grade_field(form)
    if err:
        return _bad_request(err)

    store = request.app.state.session_store
    try:
        pid = store.create_participant(name, school, grade)
    except SessionStoreError as exc:
        return _unavailable(exc)

    participant = store.get_participant(pid)
    resp = private_response({"id": encode(pid), "participant": participant.to_view()}, status_code=201)
    set_identity_cookie(resp, pid, environment=request.app.state.settings.environment)
    return resp


@registration_router.post("/api/admins")
async def register_admin(request: Request):
    """Register a school admin and log them in.

    Form fields: school.
    Response: 201 with the admin view model and `Set-Cookie: id=A…`.
    """
    form = await request.form()
    school, err = _text_field(form, "school")
    if err:
        return _bad_request(err)

    store = request.app.state.session_store
    try:
        aid = store.create_admin(school)
    except SessionStoreError as exc:
        return _unavailable(exc)

    admin = store.get_admin(aid)
    resp = private_response({"id": encode(aid), "admin": admin.to_view()}, status_code=201)
    set_identity_cookie(resp, aid, environment=request.app.state.settings.environment)
    return resp


@registration_router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request):
    """Drop the identity cookie and return to the login page.

    The stored record is kept: the store is append-only.
    """
    resp = RedirectResponse(url="/login", status_code=303)
    resp.headers["Cache-Control"] = "private, no-store"
    clear_identity_cookie(resp, environment=request.app.state.settings.environment)
    return resp
