"""Secret write path: validation, versions, audit, import/export."""

import pytest
import yaml

from secretsync.cache import Cache
from secretsync.exceptions import (
    EnvironmentNotFoundError,
    ProjectNotFoundError,
    SecretNotFoundError,
    StorageError,
    ValidationError,
)
from secretsync.models.tables import AuditAction
from secretsync.services import SecretService


class RecordingCache(Cache):
    def __init__(self):
        super().__init__(None)
        self.cleared = 0

    def clear_search(self) -> bool:
        self.cleared += 1
        return True


class TestSaveSecret:
    def test_new_secret_starts_at_version_one(self, secret_service, project, envs):
        secret = secret_service.save_secret(
            project.id, envs["development"].id, "API_KEY", "abc", actor="dev@example.com"
        )

        assert secret.version == 1
        assert secret.value == "abc"
        assert secret.last_changed_by == "dev@example.com"

    def test_new_value_increments_version_by_one(self, secret_service, project, envs):
        env_id = envs["development"].id
        secret_service.save_secret(project.id, env_id, "API_KEY", "abc")

        secret = secret_service.save_secret(project.id, env_id, "API_KEY", "def")

        assert secret.version == 2
        assert secret.value == "def"

    def test_same_value_still_increments_version(self, secret_service, project, envs):
        env_id = envs["development"].id
        first = secret_service.save_secret(project.id, env_id, "API_KEY", "abc")
        first_updated = first.updated_at

        second = secret_service.save_secret(project.id, env_id, "API_KEY", "abc")

        assert second.version == 2
        assert second.updated_at > first_updated

    def test_empty_string_is_a_value(self, secret_service, project, envs):
        secret = secret_service.save_secret(project.id, envs["development"].id, "EMPTY", "")

        assert secret.value == ""

    def test_write_advances_watermark(self, secret_service, store, project, envs):
        secret = secret_service.save_secret(project.id, envs["staging"].id, "API_KEY", "abc")

        entry = store.get_registry_entry(project.id, "API_KEY")
        assert entry.last_updated_at == secret.updated_at

    @pytest.mark.parametrize("key", ["", "api_key", "API-KEY", "API KEY", "ÄPI"])
    def test_invalid_key_rejected_before_write(self, secret_service, store, project, envs, key):
        with pytest.raises(ValidationError):
            secret_service.save_secret(project.id, envs["development"].id, key, "v")

        assert store.get_secrets(project.id) == []
        assert store.get_registry(project.id) == {}

    def test_none_value_rejected(self, secret_service, project, envs):
        with pytest.raises(ValidationError):
            secret_service.save_secret(project.id, envs["development"].id, "API_KEY", None)

    def test_unknown_project(self, secret_service, envs):
        with pytest.raises(ProjectNotFoundError):
            secret_service.save_secret("nope", envs["development"].id, "API_KEY", "v")

    def test_unknown_environment(self, secret_service, project):
        with pytest.raises(EnvironmentNotFoundError):
            secret_service.save_secret(project.id, "nope", "API_KEY", "v")

    def test_environment_of_other_project(self, secret_service, project_service, project):
        other = project_service.create_project("Billing")
        other_env = project_service.get_environment(other.id, "staging")

        with pytest.raises(ValidationError):
            secret_service.save_secret(project.id, other_env.id, "API_KEY", "v")

    def test_audit_entry_appended(self, secret_service, project, envs):
        secret = secret_service.save_secret(
            project.id, envs["development"].id, "API_KEY", "v", actor="dev@example.com"
        )

        logs = secret_service.audit.get_audit_logs(project.id)

        assert len(logs) == 1
        assert logs[0].action == AuditAction.SECRET_UPDATE.value
        assert logs[0].entity_id == secret.id
        assert logs[0].environment_id == envs["development"].id
        assert logs[0].performed_by == "dev@example.com"

    def test_unknown_actor_label(self, secret_service, project, envs):
        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")

        assert secret.last_changed_by == "Unknown"

    def test_registry_failure_keeps_value(self, secret_service, store, project, envs, monkeypatch):
        def broken(*args, **kwargs):
            raise StorageError("registry unavailable")

        monkeypatch.setattr(secret_service.registry, "record_write", broken)

        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")

        assert store.get_secret(secret.id).value == "v"
        assert store.get_registry_entry(project.id, "API_KEY") is None

    def test_audit_failure_keeps_value(self, secret_service, store, project, envs, monkeypatch):
        def broken(*args, **kwargs):
            raise StorageError("audit unavailable")

        monkeypatch.setattr(secret_service.audit, "append", broken)

        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")

        assert store.get_secret(secret.id).value == "v"
        assert store.get_registry_entry(project.id, "API_KEY") is not None

    def test_writes_clear_search_cache(self, store, clock, project, envs):
        cache = RecordingCache()
        service = SecretService(store, clock=clock, cache=cache)

        secret = service.save_secret(project.id, envs["development"].id, "API_KEY", "v")
        service.delete_secret(secret.id)

        assert cache.cleared == 2


class TestDeleteAndMarkSynced:
    def test_delete_unknown(self, secret_service):
        with pytest.raises(SecretNotFoundError):
            secret_service.delete_secret("missing")

    def test_delete_is_audited(self, secret_service, project, envs):
        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")

        secret_service.delete_secret(secret.id, actor="admin@example.com")

        latest = secret_service.audit.get_audit_logs(project.id)[0]
        assert latest.action == AuditAction.SECRET_DELETE.value
        assert latest.entity_id == secret.id

    def test_mark_synced_keeps_value_and_version(self, secret_service, project, envs):
        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")
        secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v2")
        before = secret.updated_at

        marked = secret_service.mark_synced(secret.id)

        assert marked.value == "v2"
        assert marked.version == 2
        assert marked.updated_at > before

    def test_mark_synced_does_not_move_watermark(self, secret_service, store, project, envs):
        secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")
        watermark = store.get_registry_entry(project.id, "API_KEY").last_updated_at

        secret_service.mark_synced(secret.id)

        assert store.get_registry_entry(project.id, "API_KEY").last_updated_at == watermark

    def test_mark_synced_unknown(self, secret_service):
        with pytest.raises(SecretNotFoundError):
            secret_service.mark_synced("missing")

    def test_history_newest_first(self, secret_service, project, envs):
        env_id = envs["development"].id
        secret = secret_service.save_secret(project.id, env_id, "API_KEY", "v1")
        secret_service.save_secret(project.id, env_id, "API_KEY", "v2")
        secret_service.mark_synced(secret.id)
        secret_service.save_secret(project.id, env_id, "OTHER_KEY", "x")

        history = secret_service.secret_history(secret.id)

        assert [entry.action for entry in history] == [
            AuditAction.SECRET_SYNC.value,
            AuditAction.SECRET_UPDATE.value,
            AuditAction.SECRET_UPDATE.value,
        ]


class TestImportExport:
    def test_import_dotenv(self, secret_service, store, project, envs, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            'API_KEY=abc\nbad-key=1\nEMPTY=\nBARE\nDATABASE_URL="postgres://db/app"\n'
        )

        saved, skipped = secret_service.import_dotenv(
            project.id, envs["staging"].id, env_file, actor="cli"
        )

        assert saved == ["API_KEY", "EMPTY", "DATABASE_URL"]
        assert skipped == ["bad-key", "BARE"]
        stored = {s.key: s.value for s in store.get_secrets(project.id, envs["staging"].id)}
        assert stored == {"API_KEY": "abc", "EMPTY": "", "DATABASE_URL": "postgres://db/app"}

    def test_import_missing_file(self, secret_service, project, envs, tmp_path):
        with pytest.raises(ValidationError):
            secret_service.import_dotenv(project.id, envs["staging"].id, tmp_path / "nope.env")

    def test_export_env(self, secret_service, project, envs):
        env_id = envs["production"].id
        secret_service.save_secret(project.id, env_id, "GREETING", "hello world")
        secret_service.save_secret(project.id, env_id, "API_KEY", "abc")

        content = secret_service.export_environment(project.id, env_id, "env")

        assert content == 'API_KEY=abc\nGREETING="hello world"\n'

    def test_export_yaml(self, secret_service, project, envs):
        env_id = envs["production"].id
        secret_service.save_secret(project.id, env_id, "API_KEY", "abc")
        secret_service.save_secret(project.id, env_id, "PORT", "8080")

        content = secret_service.export_environment(project.id, env_id, "yaml")

        assert yaml.safe_load(content) == {"API_KEY": "abc", "PORT": "8080"}

    def test_export_unknown_format(self, secret_service, project, envs):
        with pytest.raises(ValidationError):
            secret_service.export_environment(project.id, envs["production"].id, "toml")
