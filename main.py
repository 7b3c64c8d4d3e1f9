import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import AlreadyTerminal, QuizError
from routers.health import router as health_router
from routers.history import router as history_router
from routers.sessions import router as sessions_router
from routers.users import router as users_router

logger = logging.getLogger("sumrise-practice")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Sumrise Maths – Practice API")

_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,https://sumrise-maths.vercel.app"

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuizError)
def quiz_error_handler(request: Request, exc: QuizError):
    if isinstance(exc, AlreadyTerminal):
        logger.info("%s %s: %s", request.method, request.url.path, exc)
    elif exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.code, "detail": str(exc)},
    )


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(sessions_router)  # /sessions/...
app.include_router(history_router)  # /history, /leaderboard, /high-scores, /difficulties
app.include_router(users_router)  # /auth/login
app.include_router(health_router)  # /health/...
