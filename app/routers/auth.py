from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core.database import get_db
from app.dependencies.auth import login_session
from app.services.accounts import AccountError, authenticate, create_user

logger = get_logger()
router = APIRouter(tags=["auth"])


def _auth_page(title: str, action: str, button_text: str) -> str:
    signup = action == "/signup"
    name_field = """
      <label for="name">Name</label>
      <input id="name" name="name" placeholder="Your name" required />""" if signup else ""
    footer = (
        '<span>Already have an account? <a href="/login">Login</a></span>'
        if signup
        else '<span>Don\'t have an account? <a href="/signup">Sign up</a></span>'
    )
    return f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <meta name="viewport" content="width=device-width,initial-scale=1">
  <style>
    body{{font-family:Inter,Arial,Helvetica,sans-serif;background:#f3f4f6;color:#0b1220;display:flex;align-items:center;justify-content:center;height:100vh;margin:0}}
    .box{{background:white;border-radius:10px;padding:28px;width:360px;box-shadow:0 10px 30px rgba(2,6,23,0.08)}}
    label{{display:block;font-size:13px;color:#52606d;margin-top:10px}}
    input{{width:100%;padding:10px 12px;margin-top:6px;border-radius:8px;border:1px solid #e6eef8;box-sizing:border-box}}
    button{{margin-top:14px;width:100%;padding:10px;border-radius:8px;border:0;background:#7c3aed;color:white;font-weight:600;cursor:pointer}}
    .muted{{margin-top:10px;font-size:13px;color:#64748b;text-align:center}}
    a{{color:#7c3aed;text-decoration:none}}
  </style>
</head>
<body>
  <div class="box">
    <h2>{title}</h2>
    <form method="POST" action="{action}">{name_field}
      <label for="email">Email</label>
      <input id="email" type="email" name="email" placeholder="you@example.com" required />
      <label for="password">Password</label>
      <input id="password" type="password" name="password" required />
      <button type="submit">{button_text}</button>
    </form>
    <div class="muted">{footer}</div>
  </div>
</body>
</html>
"""


def _message_page(message: str, retry_url: str, status_code: int) -> HTMLResponse:
    return HTMLResponse(
        content=f'<p>{message}. <a href="{retry_url}">Try again</a></p>',
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page():
    return HTMLResponse(content=_auth_page("Login", "/login", "Login"))


@router.post("/login")
async def login(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, email, password)
    if user is None:
        return _message_page("Invalid credentials", "/login", status.HTTP_401_UNAUTHORIZED)
    login_session(request, user.id, user.display_name)
    logger.info("User logged in", user_id=user.id)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/signup", response_class=HTMLResponse)
async def signup_page():
    return HTMLResponse(content=_auth_page("Sign Up", "/signup", "Create account"))


@router.post("/signup")
async def signup(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await create_user(db, email, password, name)
    except AccountError as e:
        return _message_page(str(e), "/signup", status.HTTP_400_BAD_REQUEST)
    login_session(request, user.id, user.display_name)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/logout")
async def logout(request: Request):
    request.session.clear()
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
