"""
Search Service

Substring search over project names/slugs and secret keys. Secret hits are
grouped by key with the projects that use it. Results may be cached in
Redis; the cache is keyed per query and per caller scope.
"""

from typing import Dict, List, Optional

from secretsync.cache import NULL_CACHE, Cache
from secretsync.constants import SEARCH_MIN_QUERY_LENGTH, SEARCH_PROJECT_LIMIT
from secretsync.models.identity import Identity
from secretsync.models.results import SearchResults
from secretsync.services.access_service import AccessService
from secretsync.store import SecretStore


class SearchService:
    """Global search across projects and secret keys."""

    def __init__(self, store: SecretStore, cache: Cache = NULL_CACHE):
        self.store = store
        self.cache = cache
        self.access = AccessService(store)

    def search(self, query: str, identity: Optional[Identity] = None) -> SearchResults:
        """
        Search projects and secret keys.

        Args:
            query: Substring to look for (case-insensitive)
            identity: Caller; non-admins only see their projects

        Returns:
            SearchResults (empty for queries shorter than 2 characters)
        """
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_QUERY_LENGTH:
            return SearchResults()

        project_ids: Optional[List[str]] = None
        scope = "all"
        if identity is not None and not identity.is_admin:
            project_ids = [p.id for p in self.access.visible_projects(identity)]
            scope = identity.user_id or "anonymous"

        cache_key = f"search:{scope}:{query.lower()}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return SearchResults.from_dict(cached)

        results = SearchResults(
            projects=self._search_projects(query, project_ids),
            secrets=self._search_secrets(query, project_ids),
        )
        self.cache.set(cache_key, results.to_dict())
        return results

    def _search_projects(self, query: str, project_ids: Optional[List[str]]) -> List[Dict]:
        if project_ids is not None and not project_ids:
            return []
        allowed = set(project_ids) if project_ids is not None else None

        limit = SEARCH_PROJECT_LIMIT if allowed is None else None
        projects = self.store.search_projects(query, limit=limit)
        if allowed is not None:
            projects = [p for p in projects if p.id in allowed][:SEARCH_PROJECT_LIMIT]

        return [
            {
                "id": project.id,
                "name": project.name,
                "slug": project.slug,
                "description": project.description or "",
                "type": "PROJECT",
            }
            for project in projects
        ]

    def _search_secrets(self, query: str, project_ids: Optional[List[str]]) -> List[Dict]:
        secrets = self.store.search_secret_keys(query, project_ids=project_ids)
        if not secrets:
            return []

        projects = {
            p.id: p
            for p in self.store.list_projects(list({s.project_id for s in secrets}))
        }

        grouped: Dict[str, Dict[str, Dict]] = {}
        for secret in secrets:
            used_in = grouped.setdefault(secret.key, {})
            project = projects.get(secret.project_id)
            if project is not None:
                used_in[project.id] = {
                    "id": project.id,
                    "name": project.name,
                    "slug": project.slug,
                }

        return [
            {
                "key": key,
                "type": "SECRET",
                "used_in": list(used_in.values()),
                "count": len(used_in),
            }
            for key, used_in in grouped.items()
        ]
