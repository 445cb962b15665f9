"""Sync evaluation: SYNCED / OUTDATED / MISSING classification."""

from datetime import datetime

from secretsync.models.results import SyncStatus
from secretsync.models.tables import Secret
from secretsync.services import classify
from secretsync.services.propagation import EditSession


def statuses(secret_service, project_id, key):
    return {
        record.environment_id: record.status
        for record in secret_service.sync.evaluate(project_id)
        if record.key == key
    }


class TestClassify:
    def test_missing_without_secret(self):
        assert classify(None, datetime(2026, 1, 1)) is SyncStatus.MISSING

    def test_missing_precedes_outdated(self):
        # No timestamps can make an absent copy anything but MISSING
        assert classify(None, None) is SyncStatus.MISSING
        assert classify(None, datetime.max) is SyncStatus.MISSING

    def test_older_copy_is_outdated(self):
        secret = Secret(updated_at=datetime(2026, 1, 1, 10))
        assert classify(secret, datetime(2026, 1, 1, 11)) is SyncStatus.OUTDATED

    def test_equal_timestamp_is_synced(self):
        secret = Secret(updated_at=datetime(2026, 1, 1, 10))
        assert classify(secret, datetime(2026, 1, 1, 10)) is SyncStatus.SYNCED

    def test_newer_copy_is_synced(self):
        secret = Secret(updated_at=datetime(2026, 1, 1, 12))
        assert classify(secret, datetime(2026, 1, 1, 11)) is SyncStatus.SYNCED


class TestDatabaseUrlScenario:
    def test_write_outdate_and_propagate(self, secret_service, store, project, envs):
        dev, staging, prod = envs["development"], envs["staging"], envs["production"]

        first = secret_service.save_secret(project.id, dev.id, "DATABASE_URL", "devurl")
        t1 = first.updated_at
        assert store.get_registry_entry(project.id, "DATABASE_URL").last_updated_at == t1
        assert statuses(secret_service, project.id, "DATABASE_URL") == {
            dev.id: SyncStatus.SYNCED,
            staging.id: SyncStatus.MISSING,
            prod.id: SyncStatus.MISSING,
        }

        second = secret_service.save_secret(
            project.id, staging.id, "DATABASE_URL", "staginurl"
        )
        t2 = second.updated_at
        assert t2 > t1
        assert store.get_registry_entry(project.id, "DATABASE_URL").last_updated_at == t2
        assert statuses(secret_service, project.id, "DATABASE_URL") == {
            dev.id: SyncStatus.OUTDATED,
            staging.id: SyncStatus.SYNCED,
            prod.id: SyncStatus.MISSING,
        }

        session = EditSession(secret_service, project.id, staging.id)
        session.stage_value(second.id, "staginurl-v2")
        session.commit()
        result = session.propagate([dev.id])

        assert result.is_success
        dev_copy = store.find_secret(project.id, dev.id, "DATABASE_URL")
        assert dev_copy.value == "staginurl-v2"
        assert statuses(secret_service, project.id, "DATABASE_URL")[dev.id] is SyncStatus.SYNCED

    def test_delete_only_removes_that_copy(self, secret_service, store, project, envs):
        dev, staging = envs["development"], envs["staging"]
        dev_copy = secret_service.save_secret(project.id, dev.id, "DATABASE_URL", "devurl")
        staging_copy = secret_service.save_secret(
            project.id, staging.id, "DATABASE_URL", "staginurl"
        )
        watermark = store.get_registry_entry(project.id, "DATABASE_URL").last_updated_at
        before = statuses(secret_service, project.id, "DATABASE_URL")

        staging_id = staging_copy.id
        secret_service.delete_secret(staging_id)

        assert store.get_secret(staging_id) is None
        remaining = store.find_secret(project.id, dev.id, "DATABASE_URL")
        assert remaining.id == dev_copy.id
        assert remaining.value == "devurl"
        assert store.get_registry_entry(project.id, "DATABASE_URL").last_updated_at == watermark

        after = statuses(secret_service, project.id, "DATABASE_URL")
        assert after[staging.id] is SyncStatus.MISSING
        assert after[dev.id] is before[dev.id]


class TestEvaluate:
    def test_every_pair_classified_once(self, secret_service, project, envs):
        secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "a")
        secret_service.save_secret(project.id, envs["staging"].id, "REDIS_URL", "r")

        records = secret_service.sync.evaluate(project.id)

        pairs = [(r.environment_id, r.key) for r in records]
        assert len(pairs) == len(set(pairs)) == 3 * 2
        assert all(isinstance(r.status, SyncStatus) for r in records)

    def test_identical_values_can_still_be_outdated(self, secret_service, project, envs):
        dev, staging = envs["development"], envs["staging"]
        secret_service.save_secret(project.id, dev.id, "API_KEY", "same")
        secret_service.save_secret(project.id, staging.id, "API_KEY", "same")

        result = statuses(secret_service, project.id, "API_KEY")

        assert result[dev.id] is SyncStatus.OUTDATED
        assert result[staging.id] is SyncStatus.SYNCED

    def test_mark_synced_clears_outdated(self, secret_service, project, envs):
        dev, staging = envs["development"], envs["staging"]
        dev_copy = secret_service.save_secret(project.id, dev.id, "API_KEY", "old")
        secret_service.save_secret(project.id, staging.id, "API_KEY", "new")
        assert statuses(secret_service, project.id, "API_KEY")[dev.id] is SyncStatus.OUTDATED

        marked = secret_service.mark_synced(dev_copy.id)

        assert marked.value == "old"
        assert marked.version == 1
        assert statuses(secret_service, project.id, "API_KEY")[dev.id] is SyncStatus.SYNCED

    def test_restricted_to_environment_ids(self, secret_service, project, envs):
        secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "a")

        records = secret_service.sync.evaluate(project.id, [envs["production"].id])

        assert len(records) == 1
        assert records[0].environment_id == envs["production"].id
        assert records[0].status is SyncStatus.MISSING

    def test_records_carry_description(self, secret_service, project, envs):
        secret_service.add_secret(
            project.id, envs["development"].id, "API_KEY", "a", description="Billing API"
        )

        records = secret_service.sync.evaluate(project.id)

        assert {r.description for r in records} == {"Billing API"}

    def test_summary_counts(self, secret_service, project, envs):
        dev, staging = envs["development"], envs["staging"]
        secret_service.save_secret(project.id, dev.id, "API_KEY", "a")
        secret_service.save_secret(project.id, staging.id, "API_KEY", "b")
        secret_service.save_secret(project.id, dev.id, "REDIS_URL", "r")

        summaries = {
            s.environment_id: s for s in secret_service.sync.summarize(project.id)
        }

        assert (summaries[dev.id].synced, summaries[dev.id].outdated) == (1, 1)
        assert (summaries[staging.id].synced, summaries[staging.id].missing) == (1, 1)
        assert summaries[envs["production"].id].missing == 2
        assert not summaries[dev.id].is_in_sync


class TestCompareKey:
    def test_latest_and_matches(self, secret_service, project, envs):
        dev, staging, prod = envs["development"], envs["staging"], envs["production"]
        secret_service.save_secret(project.id, dev.id, "API_KEY", "v2")
        secret_service.save_secret(project.id, staging.id, "API_KEY", "v1")
        secret_service.save_secret(project.id, prod.id, "API_KEY", "v1")

        rows = {row.environment_id: row for row in secret_service.compare_key(project.id, "API_KEY")}

        assert rows[prod.id].is_latest
        assert not rows[dev.id].is_latest
        assert rows[staging.id].matches_latest
        assert not rows[dev.id].matches_latest
        # Status is timestamp based: matching the latest value does not make it synced
        assert rows[staging.id].status is SyncStatus.OUTDATED
        assert rows[prod.id].status is SyncStatus.SYNCED

    def test_missing_row(self, secret_service, project, envs):
        secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "v")

        rows = {row.environment_id: row for row in secret_service.compare_key(project.id, "API_KEY")}

        missing = rows[envs["production"].id]
        assert missing.status is SyncStatus.MISSING
        assert missing.value is None
        assert not missing.is_latest
