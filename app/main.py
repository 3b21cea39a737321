from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
from app.routers import auth, health, pages, route
from app.core.database import init_models
from app.core.errors import RouteLookupError
from app.core.logging import setup_logging
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis
from app.config import settings

app = FastAPI(title="Route Optimizer")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["https://*.onrender.com", "https://*.vercel.app"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET, https_only=False)
app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(route.router)
app.include_router(health.router)

@app.exception_handler(RouteLookupError)
async def route_lookup_error_handler(request: Request, exc: RouteLookupError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.on_event("startup")
async def startup_event():
    setup_logging()
    await init_models()
    redis = await Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
    await FastAPILimiter.init(redis)
