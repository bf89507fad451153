import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import psycopg2
from dotenv import load_dotenv
from fastapi import Cookie, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from jose import JWTError, jwt

from onesub import app_context
from onesub.app.accounts.models import UserRecord
from onesub.app.routes.accounts import router as accounts_router
from onesub.app.services.rules_engine import get_rules_engine
from onesub.config import load_rules_config


load_dotenv()

CONFIG = load_rules_config()

logging.basicConfig(
    level=getattr(logging, CONFIG.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("onesub")

JWT_ALGORITHM = "HS256"
JWT_EXP_MINUTES = 60 * 24 * 7  # 7 days


def get_conn():
    return psycopg2.connect(**CONFIG.db_config)


def create_session_token(user_id: str, *, expires_in: Optional[timedelta] = None) -> str:
    expires_at = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=JWT_EXP_MINUTES))
    payload = {"sub": user_id, "exp": expires_at}
    return jwt.encode(payload, CONFIG.jwt_secret_key, algorithm=JWT_ALGORITHM)


def resolve_user_from_session_token(session_token: str) -> Optional[UserRecord]:
    try:
        payload = jwt.decode(session_token, CONFIG.jwt_secret_key, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    return get_rules_engine().repository.get_user(str(subject))


def get_current_user(
    session_token: Optional[str] = Cookie(None, alias=CONFIG.session_cookie_name),
) -> Optional[UserRecord]:
    """Resolve the caller; the rules engine rejects ``None`` as unauthenticated."""
    if not session_token:
        return None
    return resolve_user_from_session_token(session_token)


app_context.configure(get_conn=get_conn, get_current_user=get_current_user)

app = FastAPI(title="OneSub Rules API")

# Vite proxy origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(accounts_router)


@app.get("/api/healthz")
def healthz():
    return {"ok": True}
