"""Project and environment management."""

import pytest

from secretsync.exceptions import (
    ConflictError,
    EnvironmentNotFoundError,
    ProjectNotFoundError,
    ValidationError,
)
from secretsync.models.results import SyncStatus
from secretsync.utils import slugify


@pytest.mark.parametrize(
    "name,slug",
    [
        ("Growth", "growth"),
        ("Growth Platform", "growth-platform"),
        ("  API  v2! ", "api-v2"),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_create_project_with_default_environments(project, envs):
    assert project.slug == "growth"
    assert sorted(envs) == ["development", "production", "staging"]
    assert envs["production"].is_production
    assert not envs["staging"].is_production


def test_duplicate_project(project_service, project):
    with pytest.raises(ConflictError):
        project_service.create_project("growth")


def test_blank_project_name(project_service):
    with pytest.raises(ValidationError):
        project_service.create_project("   ")


def test_get_project_by_slug(project_service, project):
    assert project_service.get_project_by_slug("growth").id == project.id
    with pytest.raises(ProjectNotFoundError):
        project_service.get_project_by_slug("nope")


def test_get_environment_lists_available(project_service, project):
    with pytest.raises(EnvironmentNotFoundError) as exc_info:
        project_service.get_environment(project.id, "qa")

    assert sorted(exc_info.value.available) == ["development", "production", "staging"]


def test_create_child_environment(project_service, project, envs):
    preview = project_service.create_environment(
        project.id, "Preview 42", parent_id=envs["staging"].id
    )

    assert preview.slug == "preview-42"
    assert preview.parent_id == envs["staging"].id


def test_duplicate_environment(project_service, project, envs):
    with pytest.raises(ConflictError):
        project_service.create_environment(project.id, "Staging")


def test_parent_from_other_project(project_service, project):
    other = project_service.create_project("Billing")
    other_staging = project_service.get_environment(other.id, "staging")

    with pytest.raises(ValidationError):
        project_service.create_environment(project.id, "Preview", parent_id=other_staging.id)


def test_delete_environment_keeps_registry(
    project_service, secret_service, store, project, envs
):
    staging_id = envs["staging"].id
    secret_service.save_secret(project.id, staging_id, "API_KEY", "s")
    secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "d")

    deleted = project_service.delete_environment(staging_id)

    assert deleted == 1
    assert store.get_environment(staging_id) is None
    assert store.get_registry_entry(project.id, "API_KEY") is not None
    records = secret_service.sync.evaluate(project.id)
    assert {r.environment_id for r in records} == {
        envs["development"].id,
        envs["production"].id,
    }
    by_env = {r.environment_id: r.status for r in records}
    assert by_env[envs["development"].id] is SyncStatus.SYNCED


def test_delete_environment_reparents_children(project_service, store, project, envs):
    staging_id = envs["staging"].id
    preview = project_service.create_environment(project.id, "Preview", parent_id=staging_id)
    preview_id = preview.id

    project_service.delete_environment(staging_id)

    assert store.get_environment(preview_id).parent_id is None


def test_delete_unknown_environment(project_service):
    with pytest.raises(EnvironmentNotFoundError):
        project_service.delete_environment("nope")
