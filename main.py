import json
import logging
from typing import Optional

import jwt
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from jwt import PyJWKClient
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from netsuite_sync.config import LOG_DIR, NetSuiteConfig, Settings
from netsuite_sync.csv_import import parse_csv_text
from netsuite_sync.errors import SyncError
from netsuite_sync.job_log import DailyLogger
from netsuite_sync.models import SyncKind
from netsuite_sync.orchestration import run_sync
from netsuite_sync.stores import create_store

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

_SETTINGS = Settings()

# Allow-Origin comes from CORSMiddleware, which honours ALLOWED_ORIGINS.
CORS_HEADERS = {
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

app = FastAPI(title="NetSuite author sync")

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Collaborators live on app.state so tests can swap them.
app.state.store = create_store(_SETTINGS)
app.state.netsuite_config = NetSuiteConfig.from_settings(_SETTINGS)
app.state.netsuite_transport = None
app.state.audit_logger = DailyLogger("netsuite_sync_runs", "sync_runs_{date}.log", LOG_DIR, subfolder="sync_runs")


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_SETTINGS.get_list("ALLOWED_ORIGINS", "allowed_origins", ["*"]),
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


class _AuthVerifier:
    def __init__(self, jwks_url: Optional[str], jwt_secret: Optional[str]):
        self.jwks_client = PyJWKClient(jwks_url) if jwks_url and jwks_url.strip() else None
        self.jwt_secret = jwt_secret

    def verify(self, token: Optional[str]) -> dict:
        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

        # Try JWKS first (for RS256 user tokens)
        if self.jwks_client:
            try:
                signing_key = self.jwks_client.get_signing_key_from_jwt(token).key
                return jwt.decode(
                    token,
                    signing_key,
                    algorithms=["RS256"],
                    options={"verify_aud": False},
                )
            except jwt.PyJWTError as jwks_exc:
                logger.debug(f"JWKS verification failed: {jwks_exc}, trying JWT secret fallback")

        # Fall back to JWT secret (for HS256 tokens)
        if self.jwt_secret:
            try:
                return jwt.decode(
                    token,
                    self.jwt_secret,
                    algorithms=["HS256"],
                    options={"verify_aud": False},
                )
            except jwt.PyJWTError as exc:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=f"Invalid token: {exc}"
                ) from exc

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT verification is not configured (set SUPABASE_JWKS_URL or SUPABASE_JWT_SECRET)",
        )


_AUTH_VERIFIER = _AuthVerifier(
    _SETTINGS.get("SUPABASE_JWKS_URL", "supabase_jwks_url"),
    _SETTINGS.get("SUPABASE_JWT_SECRET", "supabase_jwt_secret"),
)


def _extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header:
        return None
    if not auth_header.lower().startswith("bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


async def require_auth(request: Request):
    token = _extract_bearer_token(request.headers.get("Authorization"))
    payload = _AUTH_VERIFIER.verify(token)
    request.state.user = payload
    return payload


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=CORS_HEADERS,
    )


@app.get("/health")
def health():
    return {
        "status": "ok",
        "store": app.state.store.name,
        "netsuite_configured": not app.state.netsuite_config.missing_fields(),
    }


@app.options("/api/netsuite/sync")
def sync_netsuite_preflight():
    """CORS preflight for the browser-based admin UI."""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@app.post("/api/netsuite/sync")
@limiter.limit("10/minute")
async def sync_netsuite(request: Request, user: dict = Depends(require_auth)):
    """
    Synchronize authors from NetSuite (full / incremental) or from CSV rows.

    Request body:
    {
        "type": "full" | "incremental" | "csv_import",   # default: incremental
        "csvData": [{"email": "...", "first_name": "..."}],  # csv_import rows
        "csvText": "email,first_name\\n...",            # alternative to csvData
        "triggeredBy": "<admin id>"                      # default: token subject
    }

    Returns 200:
    {
        "success": true,
        "sync_id": 12,
        "status": "completed",
        "processed": 3, "created": 2, "updated": 1, "failed": 0,
        "errors": [{"key": "row 2", "error": "Missing email"}]   # first 10
    }
    or 500 {"success": false, "error": "..."} when the run as a whole failed.
    """
    raw_body = await request.body()
    try:
        body = json.loads(raw_body) if raw_body.strip() else {}
    except ValueError:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid JSON in request body")
    if not isinstance(body, dict):
        return _error_response(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    try:
        kind = SyncKind(body.get("type") or SyncKind.INCREMENTAL.value)
    except ValueError:
        valid = ", ".join(k.value for k in SyncKind)
        return _error_response(status.HTTP_400_BAD_REQUEST, f"Invalid sync type: {body.get('type')} (expected {valid})")

    csv_rows = None
    if kind == SyncKind.CSV_IMPORT:
        csv_rows = body.get("csvData")
        if csv_rows is None and isinstance(body.get("csvText"), str):
            csv_rows = parse_csv_text(body["csvText"])
        if not isinstance(csv_rows, list):
            return _error_response(status.HTTP_400_BAD_REQUEST, "csv_import requires csvData (array of rows) or csvText")

    triggered_by = body.get("triggeredBy") or user.get("sub") or user.get("email")

    try:
        summary = await run_sync(
            kind,
            app.state.store,
            netsuite_config=app.state.netsuite_config,
            csv_rows=csv_rows,
            triggered_by=triggered_by,
            transport=app.state.netsuite_transport,
            audit_logger=app.state.audit_logger,
        )
    except SyncError as exc:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    except Exception as exc:
        logger.exception("Unexpected sync failure")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Unexpected error: {exc}")

    return JSONResponse(content=summary, headers=CORS_HEADERS)
