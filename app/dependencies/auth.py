from fastapi import HTTPException, Request, status
from structlog import get_logger

logger = get_logger()

SESSION_USER_ID = "user_id"
SESSION_USER_NAME = "user_name"


def login_session(request: Request, user_id: int, user_name: str) -> None:
    request.session[SESSION_USER_ID] = user_id
    request.session[SESSION_USER_NAME] = user_name


def session_user(request: Request):
    user_id = request.session.get(SESSION_USER_ID)
    if user_id is None:
        return None
    return {"id": user_id, "name": request.session.get(SESSION_USER_NAME)}


async def get_current_user(request: Request):
    user = session_user(request)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


async def require_page_user(request: Request):
    """Like get_current_user, but sends browsers to the login page."""
    user = session_user(request)
    if user is None:
        logger.info("Unauthenticated page request", path=request.url.path)
        raise HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": "/login"})
    return user
