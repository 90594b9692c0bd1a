"""Authorization endpoint.

  GET  /authorize  validate the request, render the mock login form
  POST /authorize  validate again, mint a code, 303 back to the client

The login form has no password: the tester types the subject identifier
of the fixture user to "log in" as.  Every query parameter is echoed as a
hidden input so the POST carries the original request.

Inline HTML in the same way as a single-form login page; no template
engine.
"""

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from app.api.dependencies import get_auth_session_repo
from app.core.errors import MalformedRequest
from app.repos.auth_session_repo import AuthSessionRepo
from app.services.authorization_service import (
    AuthorizationRequest,
    issue_authorization_code,
    validate_authorization_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

SUBJECT_FIELD = "id_token_sub"

_LOGIN_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Mock Login</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 3rem auto; width: 320px; }}
    label {{ display: block; font-size: .85rem; margin-bottom: .25rem; }}
    input[type=text] {{ width: 100%; padding: .5rem; margin-bottom: 1rem; }}
    button {{ width: 100%; padding: .6rem; }}
  </style>
</head>
<body>
  <h1>Mock sign in</h1>
  <form method="post">
{hidden_inputs}
    <label for="{field}">sub</label>
    <input type="text" name="{field}" id="{field}" maxlength="255" required autofocus>
    <button type="submit">Submit</button>
  </form>
</body>
</html>
"""


def _hidden_input(name: str, value: str) -> str:
    return (
        f'    <input type="hidden" name="{html.escape(name, quote=True)}" '
        f'value="{html.escape(value, quote=True)}">'
    )


def render_login_form(params: list[tuple[str, str]]) -> str:
    hidden = "\n".join(_hidden_input(k, v) for k, v in params if k != SUBJECT_FIELD)
    return _LOGIN_HTML.format(hidden_inputs=hidden, field=SUBJECT_FIELD)


# ========================== GET /authorize ================================


@router.get("/authorize")
def authorize_page(
    request: Request,
    response_type: str | None = Query(None),
    client_id: str | None = Query(None),
    redirect_uri: str | None = Query(None),
    scope: str | None = Query(None),
    state: str | None = Query(None),
    code_challenge: str | None = Query(None),
    code_challenge_method: str | None = Query(None),
    prompt: str | None = Query(None),
) -> HTMLResponse:
    auth = validate_authorization_request(
        AuthorizationRequest(
            response_type=response_type,
            client_id=client_id,
            redirect_uri=redirect_uri,
            scope=scope,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            prompt=prompt,
        )
    )
    logger.info(
        "OAUTH FLOW [authorize] login form rendered  client_id=%s scope=%s pkce=%s",
        auth.client_id,
        auth.scope,
        auth.code_challenge_method or ("plain" if auth.code_challenge else "none"),
        extra={"client_id": auth.client_id},
    )
    return HTMLResponse(render_login_form(request.query_params.multi_items()))


# ========================== POST /authorize ===============================


@router.post("/authorize", status_code=status.HTTP_303_SEE_OTHER)
async def authorize_submit(
    response_type: str | None = Form(None),
    client_id: str | None = Form(None),
    redirect_uri: str | None = Form(None),
    scope: str | None = Form(None),
    state: str | None = Form(None),
    code_challenge: str | None = Form(None),
    code_challenge_method: str | None = Form(None),
    prompt: str | None = Form(None),
    id_token_sub: str | None = Form(None),
    sessions: AuthSessionRepo = Depends(get_auth_session_repo),
) -> RedirectResponse:
    auth = validate_authorization_request(
        AuthorizationRequest(
            response_type=response_type,
            client_id=client_id,
            redirect_uri=redirect_uri,
            scope=scope,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            prompt=prompt,
        )
    )
    logger.info(
        "OAUTH FLOW [authorize] step 1: request valid  client_id=%s redirect_uri=%s",
        auth.client_id,
        auth.redirect_uri,
        extra={"client_id": auth.client_id},
    )

    if not id_token_sub:
        raise MalformedRequest(f"Parameter {SUBJECT_FIELD} is required.")

    location = await issue_authorization_code(sessions, auth, id_token_sub)
    logger.info(
        "OAUTH FLOW [authorize] step 2: code issued  sub=%s scope=%s",
        id_token_sub,
        auth.scope,
    )
    return RedirectResponse(url=location, status_code=status.HTTP_303_SEE_OTHER)
