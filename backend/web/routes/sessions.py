"""
Session-aware pages: `/login`, `/welcome` and `/api/me`.

Why:
    These paths serve participants and admins from one URL. Each is a
    `RoleRoute`: the participant handler is tried first and a valid admin
    cookie falls through to the admin handler instead of being rejected.

Notes:
    - View models are the store records verbatim (`to_view()`); rendering is
      left to the frontend.
    - Handlers only ever receive ids the guard validated, so `get_participant`
      and `get_admin` cannot miss here.
"""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from backend.identity_access.domain import AdminId, ParticipantId, Role
from backend.identity_access.guard import GuardResult
from backend.web.routing import RoleRoute, private_response

sessions_router = APIRouter(tags=["Sessions"])

REGISTRATION_PATHS = ["/api/participants", "/api/admins"]


def _see_other(url: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=303)
    resp.headers["Cache-Control"] = "private, no-store"
    return resp


# --- /login ---------------------------------------------------------------------

login = RoleRoute("login")


@login.participant
async def login_participant(request: Request, pid: ParticipantId):
    return _see_other("/welcome")


@login.admin
async def login_admin(request: Request, aid: AdminId):
    return _see_other("/welcome")


@login.anonymous
async def login_anonymous(request: Request, result: GuardResult):
    return private_response({"status": "anonymous", "register": REGISTRATION_PATHS})


# --- /welcome -------------------------------------------------------------------

welcome = RoleRoute("welcome")


@welcome.participant
async def welcome_participant(request: Request, pid: ParticipantId):
    participant = request.app.state.session_store.get_participant(pid)
    return private_response({"role": Role.PARTICIPANT.value, "participant": participant.to_view()})


@welcome.admin
async def welcome_admin(request: Request, aid: AdminId):
    admin = request.app.state.session_store.get_admin(aid)
    return private_response({"role": Role.ADMIN.value, "admin": admin.to_view()})


@welcome.anonymous
async def welcome_anonymous(request: Request, result: GuardResult):
    return _see_other("/login")


# --- /api/me --------------------------------------------------------------------

me = RoleRoute("me")


@me.any
async def me_view(request: Request, identity):
    record = request.app.state.session_store.lookup(identity)
    return private_response({"role": identity.role.value, identity.role.value: record.to_view()})


sessions_router.add_api_route("/login", login.endpoint(), methods=["GET"])
sessions_router.add_api_route("/welcome", welcome.endpoint(), methods=["GET"])
sessions_router.add_api_route("/api/me", me.endpoint(), methods=["GET"])
