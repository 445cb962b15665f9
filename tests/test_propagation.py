"""Edit session lifecycle and propagation broadcast."""

import pytest

from secretsync.exceptions import (
    CommitError,
    NotFoundError,
    PropagationError,
    StateError,
    StorageError,
    ValidationError,
)
from secretsync.models.identity import Identity
from secretsync.models.results import CommittedSecret, SyncStatus
from secretsync.services import EditSession, SessionState, broadcast


@pytest.fixture
def seeded(secret_service, project, envs):
    """API_KEY in every environment, REDIS_URL only in development."""
    secrets = {}
    for slug in ("development", "staging", "production"):
        secrets[slug] = secret_service.save_secret(
            project.id, envs[slug].id, "API_KEY", f"{slug}-key"
        )
    secrets["redis"] = secret_service.save_secret(
        project.id, envs["development"].id, "REDIS_URL", "redis://dev"
    )
    return secrets


def session_for(secret_service, project, env, identity=None):
    return EditSession(secret_service, project.id, env.id, identity)


class TestStaging:
    def test_draft_equal_to_stored_value_is_dropped(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])

        session.stage_value(seeded["development"].id, "changed")
        session.stage_value(seeded["development"].id, "development-key")

        assert not session.has_changes

    def test_stage_secret_of_other_environment(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])

        with pytest.raises(ValidationError):
            session.stage_value(seeded["staging"].id, "x")

    def test_stage_new_rejects_existing_key(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])

        with pytest.raises(ValidationError):
            session.stage_new("API_KEY", "x")

    def test_stage_new_rejects_bad_key(self, secret_service, project, envs):
        session = session_for(secret_service, project, envs["development"])

        with pytest.raises(ValidationError):
            session.stage_new("lower", "x")

    def test_stage_description_rejects_bad_key(self, secret_service, project, envs):
        session = session_for(secret_service, project, envs["development"])

        with pytest.raises(ValidationError):
            session.stage_description("bad key", "Billing API")

        assert not session.has_changes

    def test_description_draft_equal_to_stored_is_dropped(
        self, secret_service, project, envs, seeded
    ):
        secret_service.registry.update_description(project.id, "API_KEY", "Billing")
        session = session_for(secret_service, project, envs["development"])

        session.stage_description("API_KEY", "Billing")

        assert not session.has_changes

    def test_discard(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "changed")
        session.stage_new("NEW_KEY", "n")

        session.discard()

        assert not session.has_changes
        assert session.state is SessionState.EDITING


class TestCommit:
    def test_value_commit_offers_propagation(self, secret_service, store, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "rotated")
        session.stage_new("NEW_KEY", "fresh")

        result = session.commit()

        assert result.offers_propagation
        assert sorted(result.committed_keys) == ["API_KEY", "NEW_KEY"]
        assert session.state is SessionState.PROPAGATION_OFFERED
        assert store.find_secret(project.id, envs["development"].id, "NEW_KEY").value == "fresh"
        assert store.get_secret(seeded["development"].id).value == "rotated"

    def test_deleted_draft_fails_before_any_write(
        self, secret_service, store, project, envs, seeded
    ):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "rotated")
        session.stage_new("NEW_KEY", "n")
        session.stage_value(seeded["redis"].id, "redis://new")
        redis_id = seeded["redis"].id
        secret_service.delete_secret(redis_id)

        with pytest.raises(NotFoundError):
            session.commit()

        assert store.get_secret(seeded["development"].id).value == "development-key"
        assert store.find_secret(project.id, envs["development"].id, "NEW_KEY") is None
        assert session.state is SessionState.EDITING

    def test_bad_description_key_fails_before_any_write(
        self, secret_service, store, project, envs, seeded
    ):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "rotated")
        session.description_drafts["bad key"] = "Billing API"

        with pytest.raises(ValidationError):
            session.commit()

        secret = store.get_secret(seeded["development"].id)
        assert (secret.value, secret.version) == ("development-key", 1)
        assert session.state is SessionState.EDITING

    def test_description_only_commit_skips_offer(self, secret_service, store, project, envs, seeded):
        watermark = store.get_registry_entry(project.id, "API_KEY").last_updated_at
        session = session_for(secret_service, project, envs["development"])
        session.stage_description("API_KEY", "Billing API")

        result = session.commit()

        assert not result.offers_propagation
        assert result.descriptions == ["API_KEY"]
        assert session.state is SessionState.DONE
        entry = store.get_registry_entry(project.id, "API_KEY")
        assert entry.description == "Billing API"
        assert entry.last_updated_at == watermark

    def test_commit_twice_is_a_state_error(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "rotated")
        session.commit()

        with pytest.raises(StateError):
            session.commit()

    def test_failure_reports_what_landed(self, secret_service, store, project, envs, seeded, monkeypatch):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "rotated")
        session.stage_new("NEW_KEY", "fresh")

        original = secret_service.save_secret

        def flaky(project_id, environment_id, key, value, actor=None):
            if key == "NEW_KEY":
                raise StorageError("database went away")
            return original(project_id, environment_id, key, value, actor)

        monkeypatch.setattr(secret_service, "save_secret", flaky)

        with pytest.raises(CommitError) as exc_info:
            session.commit()

        assert exc_info.value.result.committed_keys == ["API_KEY"]
        assert session.state is SessionState.DONE
        assert store.get_secret(seeded["development"].id).value == "rotated"


class TestPropagate:
    def test_broadcast_overwrites_targets(self, secret_service, store, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "shared")
        session.commit()

        result = session.propagate([envs["staging"].id, envs["production"].id])

        assert result.is_success
        assert len(result.succeeded) == 2
        for slug in ("staging", "production"):
            secret = store.find_secret(project.id, envs[slug].id, "API_KEY")
            assert secret.value == "shared"
            assert secret.version == 2
        assert session.state is SessionState.DONE

    def test_propagated_copies_are_synced(self, secret_service, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["redis"].id, "redis://shared")
        session.commit()
        session.propagate([envs["staging"].id])

        by_env = {
            r.environment_id: r.status
            for r in secret_service.sync.evaluate(project.id)
            if r.key == "REDIS_URL"
        }
        assert by_env[envs["staging"].id] is SyncStatus.SYNCED
        assert by_env[envs["production"].id] is SyncStatus.MISSING

    def test_new_keys_propagate(self, secret_service, store, project, envs):
        session = session_for(secret_service, project, envs["development"])
        session.stage_new("FEATURE_FLAG", "on")
        session.commit()

        session.propagate([envs["production"].id])

        assert store.find_secret(project.id, envs["production"].id, "FEATURE_FLAG").value == "on"

    def test_invalid_target_rejected_before_writes(self, secret_service, store, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "shared")
        session.commit()

        with pytest.raises(ValidationError):
            session.propagate([envs["staging"].id, envs["development"].id])

        assert store.get_secret(seeded["staging"].id).value == "staging-key"
        assert session.state is SessionState.PROPAGATION_OFFERED

    def test_skip(self, secret_service, store, project, envs, seeded):
        session = session_for(secret_service, project, envs["development"])
        session.stage_value(seeded["development"].id, "shared")
        session.commit()

        session.skip()

        assert session.state is SessionState.DONE
        assert store.get_secret(seeded["staging"].id).value == "staging-key"
        with pytest.raises(StateError):
            session.propagate([envs["staging"].id])

    def test_propagate_before_commit(self, secret_service, project, envs):
        session = session_for(secret_service, project, envs["development"])

        with pytest.raises(StateError):
            session.propagate([envs["staging"].id])

    def test_targets_follow_identity(self, secret_service, member_service, project, envs, seeded, member_user):
        member_service.add_member(
            project.id, member_user.email, [envs["development"].id, envs["staging"].id]
        )
        identity = Identity.from_record(member_user)
        session = session_for(secret_service, project, envs["development"], identity)
        session.stage_value(seeded["development"].id, "shared")
        session.commit()

        targets = [env.id for env in session.propagation_targets()]

        assert targets == [envs["staging"].id]
        with pytest.raises(ValidationError):
            session.propagate([envs["production"].id])


class TestBroadcast:
    def test_failures_do_not_stop_other_writes(self, secret_service, store, project, envs, seeded, monkeypatch):
        original = secret_service.save_secret

        def flaky(project_id, environment_id, key, value, actor=None):
            if environment_id == envs["staging"].id:
                raise StorageError("staging is read-only")
            return original(project_id, environment_id, key, value, actor)

        monkeypatch.setattr(secret_service, "save_secret", flaky)
        items = [
            CommittedSecret(key="API_KEY", value="shared", secret_id="-", version=1),
            CommittedSecret(key="REDIS_URL", value="redis://shared", secret_id="-", version=1),
        ]

        result = broadcast(
            secret_service, project.id, items, [envs["staging"].id, envs["production"].id]
        )

        assert not result.is_success
        assert result.failed_environments == [envs["staging"].id]
        assert {f.key for f in result.failed} == {"API_KEY", "REDIS_URL"}
        assert len(result.succeeded) == 2
        assert store.find_secret(project.id, envs["production"].id, "REDIS_URL").value == "redis://shared"
        with pytest.raises(PropagationError):
            result.raise_for_failures()
