"""FastAPI dependencies: database session, services and caller identity."""

from typing import List, Optional, Tuple

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from secretsync.cache import Cache
from secretsync.config import get_settings
from secretsync.database import get_db
from secretsync.models.identity import Identity, IdentityProvider
from secretsync.models.tables import Environment, Project, Secret
from secretsync.services import (
    AccessService,
    MemberService,
    ProjectService,
    SearchService,
    SecretService,
    UserService,
)
from secretsync.store import SecretStore
from secretsync.utils import MonotonicClock

# Shared by every request so timestamps never repeat across requests
CLOCK = MonotonicClock()

_cache: Optional[Cache] = None


class HeaderIdentityProvider(IdentityProvider):
    """Identity taken from the X-User-Id request header."""

    def __init__(self, store: SecretStore, user_id: Optional[str]):
        self.store = store
        self.user_id = user_id

    def current_identity(self) -> Optional[Identity]:
        if not self.user_id:
            return None
        user = self.store.get_user(self.user_id)
        if user is None:
            return None
        return Identity.from_record(user)


def get_store(db: Session = Depends(get_db)) -> SecretStore:
    return SecretStore(db)


def get_cache() -> Cache:
    """Process-wide search cache (disabled without SECRETSYNC_REDIS_URL)."""
    global _cache
    if _cache is None:
        _cache = Cache.from_url(get_settings().redis_url)
    return _cache


def get_clock():
    return CLOCK


def get_identity(
    x_user_id: Optional[str] = Header(None),
    store: SecretStore = Depends(get_store),
) -> Identity:
    """Resolve the caller; 401 when the header is missing or the user is unknown."""
    identity = HeaderIdentityProvider(store, x_user_id).current_identity()
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return identity


def get_secret_service(
    store: SecretStore = Depends(get_store),
    cache: Cache = Depends(get_cache),
    clock=Depends(get_clock),
) -> SecretService:
    return SecretService(store, clock=clock, cache=cache)


def get_project_service(
    store: SecretStore = Depends(get_store), cache: Cache = Depends(get_cache)
) -> ProjectService:
    return ProjectService(store, cache=cache)


def get_member_service(
    store: SecretStore = Depends(get_store), cache: Cache = Depends(get_cache)
) -> MemberService:
    return MemberService(store, cache=cache)


def get_access_service(store: SecretStore = Depends(get_store)) -> AccessService:
    return AccessService(store)


def get_user_service(store: SecretStore = Depends(get_store)) -> UserService:
    return UserService(store)


def get_search_service(
    store: SecretStore = Depends(get_store), cache: Cache = Depends(get_cache)
) -> SearchService:
    return SearchService(store, cache=cache)


# ----------------------------------------------------------------------
# Access helpers used by the routes
# ----------------------------------------------------------------------


def project_view(
    access: AccessService, project_slug: str, identity: Identity
) -> Tuple[Project, List[Environment]]:
    """Project by slug with the environments the caller can see (404 if unknown)."""
    return access.get_project_view(project_slug, identity)


def require_project_access(
    access: AccessService, project_slug: str, identity: Identity
) -> Tuple[Project, List[Environment]]:
    """Like project_view, but 403 when the caller sees no environment."""
    project, environments = project_view(access, project_slug, identity)
    if not identity.is_admin and not environments:
        raise HTTPException(status_code=403, detail="No access to this project")
    return project, environments


def require_environment(
    environments: List[Environment], environment_id: str
) -> Environment:
    """Pick a visible environment by id or slug; 403 otherwise."""
    for environment in environments:
        if environment_id in (environment.id, environment.slug):
            return environment
    raise HTTPException(status_code=403, detail="No access to this environment")


def require_secret_access(
    secrets: SecretService, access: AccessService, secret_id: str, identity: Identity
) -> Secret:
    """Secret by id (404 if unknown) whose environment the caller can see (403)."""
    secret = secrets.get_secret(secret_id)
    if not access.can_access_environment(identity, secret.environment):
        raise HTTPException(status_code=403, detail="No access to this environment")
    return secret
