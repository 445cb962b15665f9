"""
secretsync Services Layer

Centralized business logic shared by the CLI and the dashboard API.
"""

from .access_service import AccessService
from .audit_service import AuditService
from .member_service import MemberService
from .project_service import ProjectService
from .propagation import EditSession, SessionState, broadcast
from .registry_service import RegistryService, RegistryView
from .search_service import SearchService
from .secret_service import SecretService
from .sync_service import SyncService, classify
from .user_service import UserService

__all__ = [
    "AccessService",
    "AuditService",
    "EditSession",
    "MemberService",
    "ProjectService",
    "RegistryService",
    "RegistryView",
    "SearchService",
    "SecretService",
    "SessionState",
    "SyncService",
    "UserService",
    "broadcast",
    "classify",
]
