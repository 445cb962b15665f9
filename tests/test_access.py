"""Access filter and identity normalization."""

from secretsync.models.identity import Identity, StaticIdentityProvider


def test_identity_admin_flag_normalized():
    assert Identity.from_record({"id": "u1", "isAdmin": True}).is_admin
    assert Identity.from_record({"id": "u1", "is_admin": True}).is_admin
    assert not Identity.from_record({"id": "u1"}).is_admin


def test_identity_actor_label():
    identity = Identity.from_record({"userId": "u1", "email": "dev@example.com"})

    assert identity.user_id == "u1"
    assert identity.actor == "dev@example.com"
    assert Identity(user_id=None).actor == "Unknown"


def test_static_provider():
    identity = Identity(user_id="u1")

    assert StaticIdentityProvider(identity).current_identity() is identity
    assert StaticIdentityProvider(None).current_identity() is None


def test_admin_sees_everything(access_service, project_service, project, admin_user):
    identity = Identity.from_record(admin_user)
    preview = project_service.create_environment(project.id, "Preview")

    assert [p.id for p in access_service.visible_projects(identity)] == [project.id]
    visible = access_service.visible_environment_ids(project.id, identity)
    assert len(visible) == 4
    assert preview.id in visible


def test_non_member_sees_nothing(access_service, project, envs, member_user):
    identity = Identity.from_record(member_user)

    assert access_service.visible_projects(identity) == []
    assert access_service.visible_environments(project.id, identity) == []
    assert not access_service.can_access_project(identity, project.id)
    assert not access_service.can_access_environment(identity, envs["development"])


def test_member_sees_granted_environments(access_service, member_service, project, envs, member_user):
    member_service.add_member(project.id, member_user.email, [envs["staging"].id])
    identity = Identity.from_record(member_user)

    assert [p.id for p in access_service.visible_projects(identity)] == [project.id]
    assert [e.id for e in access_service.visible_environments(project.id, identity)] == [
        envs["staging"].id
    ]
    assert access_service.can_access_environment(identity, envs["staging"])
    assert not access_service.can_access_environment(identity, envs["production"])


def test_member_without_environments_sees_no_project(
    access_service, member_service, project, member_user
):
    member_service.add_member(project.id, member_user.email, [])
    identity = Identity.from_record(member_user)

    assert access_service.visible_projects(identity) == []


def test_revoked_permission(access_service, member_service, store, project, envs, member_user):
    member = member_service.add_member(project.id, member_user.email, [envs["staging"].id])
    member.has_permission = False
    store.save_member(member)
    identity = Identity.from_record(member_user)

    assert access_service.visible_environments(project.id, identity) == []


def test_anonymous_identity(access_service, project):
    identity = Identity(user_id=None)

    assert access_service.visible_projects(identity) == []
    assert access_service.visible_environment_ids(project.id, identity) == set()


def test_project_view_without_access_is_empty(access_service, project, member_user):
    found, environments = access_service.get_project_view("growth", Identity.from_record(member_user))

    assert found.id == project.id
    assert environments == []
