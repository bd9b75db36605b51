# auth.py
import logging
from urllib.parse import urlencode
from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from .config import config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth")

oauth = OAuth()
oauth.register(
    "auth0",
    client_id=config["AUTH0_CLIENT_ID"],
    client_secret=config["AUTH0_CLIENT_SECRET"],
    client_kwargs={"scope": config["AUTH0_SCOPE"]},
    server_metadata_url=f"https://{config['AUTH0_DOMAIN']}/.well-known/openid-configuration",
)

SESSION_USER_KEY = "user"
SESSION_RETURN_KEY = "return_to"


def get_session(request: Request):
    """Current user profile held in the session cookie, or None."""
    return request.session.get(SESSION_USER_KEY)


def _safe_return_to(return_to):
    # Only same-site paths are accepted as post-login targets
    if return_to and return_to.startswith("/") and not return_to.startswith("//"):
        return return_to
    return "/"


async def login(request: Request):
    request.session[SESSION_RETURN_KEY] = _safe_return_to(request.query_params.get("returnTo"))
    redirect_uri = f"{config['APP_BASE_URL']}/api/auth/callback"
    return await oauth.auth0.authorize_redirect(request, redirect_uri)


async def callback(request: Request):
    try:
        token = await oauth.auth0.authorize_access_token(request)
    except OAuthError as e:
        logger.error(f"Authentication callback failed: {e.error}")
        raise HTTPException(status_code=400, detail=f"Authentication failed: {e.error}")

    user = token.get("userinfo")
    if user is None:
        user = await oauth.auth0.userinfo(token=token)
    request.session[SESSION_USER_KEY] = dict(user)
    logger.info(f"User {user.get('sub')} logged in")
    return RedirectResponse(request.session.pop(SESSION_RETURN_KEY, "/"))


async def logout(request: Request):
    user = request.session.get(SESSION_USER_KEY)
    request.session.clear()
    if user:
        logger.info(f"User {user.get('sub')} logged out")
    if not config["AUTH0_DOMAIN"]:
        return RedirectResponse("/")
    query = urlencode({"returnTo": config["APP_BASE_URL"], "client_id": config["AUTH0_CLIENT_ID"]})
    return RedirectResponse(f"https://{config['AUTH0_DOMAIN']}/v2/logout?{query}")


HANDLERS = {
    "login": login,
    "logout": logout,
    "callback": callback,
}


@router.get("/me")
async def me(request: Request):
    try:
        user = get_session(request)
    except Exception as e:
        logger.exception(f"Error reading session: {e}")
        user = None
    return JSONResponse(user)


@router.get("/{action:path}")
async def auth_route(action: str, request: Request):
    handler = HANDLERS.get(action)
    if handler is None:
        return PlainTextResponse("Not found", status_code=404)
    return await handler(request)
