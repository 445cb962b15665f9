"""Membership, invites and user registration."""

import pytest

from secretsync.exceptions import ConflictError, NotFoundError, ValidationError
from secretsync.models.tables import AuditAction, MemberStatus

ADMIN_EMAIL = "admin@example.com"


class TestUsers:
    def test_admin_email_registers_as_admin(self, user_service):
        user = user_service.register_user(ADMIN_EMAIL.upper())

        assert user.is_admin

    def test_other_emails_are_not_admin(self, user_service):
        user = user_service.register_user("dev@example.com")

        assert not user.is_admin
        assert user.name == "dev"

    def test_duplicate_email(self, user_service):
        user_service.register_user("dev@example.com")

        with pytest.raises(ConflictError):
            user_service.register_user("DEV@example.com")

    def test_invalid_email(self, user_service):
        with pytest.raises(ValidationError):
            user_service.register_user("not-an-email")

    def test_resolve_identity(self, user_service, admin_user):
        identity = user_service.resolve_identity(admin_user.id)

        assert identity.is_admin
        assert identity.user_id == admin_user.id
        assert user_service.resolve_identity("missing") is None

    def test_get_unknown_user(self, user_service):
        with pytest.raises(NotFoundError):
            user_service.get_user("missing")


class TestMembers:
    def test_existing_user_is_active(self, member_service, project, envs, member_user):
        member = member_service.add_member(
            project.id, member_user.email, [envs["staging"].id], invited_by="admin"
        )

        assert member.status == MemberStatus.ACTIVE.value
        assert member.user_id == member_user.id

    def test_unknown_email_is_invited(self, member_service, project, envs):
        member = member_service.add_member(project.id, "new@example.com", [envs["staging"].id])

        assert member.status == MemberStatus.INVITED.value
        assert member.user_id is None

    def test_invite_activates_on_registration(
        self, member_service, user_service, store, project, envs
    ):
        member = member_service.add_member(project.id, "new@example.com", [envs["staging"].id])

        user = user_service.register_user("new@example.com")

        refreshed = store.get_member(member.id)
        assert refreshed.status == MemberStatus.ACTIVE.value
        assert refreshed.user_id == user.id

    def test_duplicate_member(self, member_service, project, envs, member_user):
        member_service.add_member(project.id, member_user.email, [envs["staging"].id])

        with pytest.raises(ConflictError):
            member_service.add_member(project.id, member_user.email.upper(), [envs["staging"].id])

    def test_foreign_environment(self, member_service, project_service, project, member_user):
        other = project_service.create_project("Billing")
        other_env = project_service.get_environment(other.id, "staging")

        with pytest.raises(ValidationError):
            member_service.add_member(project.id, member_user.email, [other_env.id])

    def test_list_members(self, member_service, project, envs, member_user):
        member_service.add_member(project.id, member_user.email, [envs["staging"].id])
        member_service.add_member(project.id, "new@example.com", [envs["production"].id])

        members = {m["email"]: m for m in member_service.list_members(project.id)}

        assert members[member_user.email]["name"] == "Dev"
        assert members[member_user.email]["environments"] == [envs["staging"].id]
        assert members["new@example.com"]["status"] == "INVITED"
        assert members["new@example.com"]["name"] == "new@example.com"

    def test_update_member(self, member_service, store, project, envs, member_user):
        member = member_service.add_member(project.id, member_user.email, [envs["staging"].id])

        member_service.update_member(
            project.id, member.id, [envs["staging"].id, envs["production"].id]
        )

        assert store.get_member(member.id).environments == [
            envs["staging"].id,
            envs["production"].id,
        ]

    def test_remove_member(self, member_service, store, project, envs, member_user):
        member = member_service.add_member(project.id, member_user.email, [envs["staging"].id])
        member_id = member.id

        member_service.remove_member(project.id, member_id)

        assert store.get_member(member_id) is None
        with pytest.raises(NotFoundError):
            member_service.remove_member(project.id, member_id)

    def test_membership_changes_are_audited(self, member_service, store, project, envs, member_user):
        member = member_service.add_member(project.id, member_user.email, [envs["staging"].id])
        member_service.update_member(project.id, member.id, [envs["production"].id])
        member_service.remove_member(project.id, member.id)

        actions = {entry.action for entry in store.get_audit_logs(project.id)}

        assert actions == {
            AuditAction.MEMBER_ADD.value,
            AuditAction.MEMBER_UPDATE.value,
            AuditAction.MEMBER_REMOVE.value,
        }
