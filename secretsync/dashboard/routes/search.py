"""Search route - projects and secret keys across visible projects."""

from fastapi import APIRouter, Depends

from secretsync.dashboard.deps import get_identity, get_search_service
from secretsync.models.identity import Identity
from secretsync.services import SearchService

router = APIRouter(tags=["search"])


@router.get("/")
def search(
    q: str = "",
    identity: Identity = Depends(get_identity),
    search_service: SearchService = Depends(get_search_service),
):
    """Case-insensitive match on project names and secret keys (2+ characters)."""
    return search_service.search(q, identity).to_dict()
