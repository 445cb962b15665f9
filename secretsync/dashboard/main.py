"""FastAPI application for the secretsync dashboard."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from secretsync import __version__
from secretsync.config import get_settings
from secretsync.dashboard.routes import (
    audit,
    environments,
    members,
    projects,
    search,
    secrets,
    users,
)
from secretsync.exceptions import (
    CommitError,
    ConflictError,
    NotFoundError,
    SecretSyncError,
    StateError,
    StorageError,
    ValidationError,
)

# Most specific first
STATUS_CODES = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StateError, 409),
    (StorageError, 503),
]

app = FastAPI(
    title="secretsync Dashboard",
    description="Manage secrets across environments and keep them in sync",
    version=__version__,
)

# CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SecretSyncError)
async def secretsync_error_handler(request: Request, exc: SecretSyncError):
    """Map domain errors to HTTP responses."""
    body = {"detail": exc.message}
    if exc.context:
        body["context"] = exc.context

    if isinstance(exc, CommitError):
        # Values written before the failure stay written
        body["committed"] = exc.result.to_dict()
        return JSONResponse(status_code=500, content=body)

    status_code = next(
        (code for error_type, code in STATUS_CODES if isinstance(exc, error_type)), 500
    )
    return JSONResponse(status_code=status_code, content=body)


app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(
    environments.router, prefix="/api/environments", tags=["environments"]
)
app.include_router(secrets.router, prefix="/api/secrets", tags=["secrets"])
app.include_router(members.router, prefix="/api/members", tags=["members"])
app.include_router(audit.router, prefix="/api/audit", tags=["audit"])
app.include_router(search.router, prefix="/api/search", tags=["search"])


@app.get("/")
def root():
    """Health check."""
    return {"status": "ok", "service": "secretsync-dashboard"}
