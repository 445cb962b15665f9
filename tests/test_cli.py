"""CLI commands against the test database."""

import json

import yaml

from secretsync.main import cli


def invoke_json(runner, args):
    result = runner.invoke(cli, args + ["--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "version" in result.output


def test_projects_create_and_list(runner, db_session):
    created = invoke_json(runner, ["projects:create", "Growth Platform"])

    assert created["slug"] == "growth-platform"
    assert sorted(created["environments"]) == ["development", "production", "staging"]

    listed = invoke_json(runner, ["projects:list"])
    assert listed["total"] == 1
    assert listed["projects"][0]["slug"] == "growth-platform"


def test_secrets_set_and_list(runner, db_session, store, project, envs):
    body = invoke_json(
        runner,
        ["secrets:set", "DATABASE_URL=postgres://db", "-p", "growth", "-e", "staging"],
    )

    assert [s["key"] for s in body["commit"]["secrets"]] == ["DATABASE_URL"]
    assert body["propagation"] is None

    listed = invoke_json(runner, ["secrets:list", "-p", "growth", "--no-mask"])
    by_env = {row["environment_id"]: row for row in listed["secrets"]}
    assert by_env[envs["staging"].id]["status"] == "SYNCED"
    assert by_env[envs["staging"].id]["value"] == "postgres://db"
    assert by_env[envs["production"].id]["status"] == "MISSING"


def test_secrets_set_propagates(runner, db_session, store, project, envs):
    body = invoke_json(
        runner,
        ["secrets:set", "API_KEY=abc", "-p", "growth", "-e", "staging", "-P", "production"],
    )

    assert body["propagation"]["succeeded"] == [
        {"environment_id": envs["production"].id, "key": "API_KEY"}
    ]
    db_session.expire_all()
    assert store.find_secret(project.id, envs["production"].id, "API_KEY").value == "abc"
    assert store.find_secret(project.id, envs["development"].id, "API_KEY") is None


def test_secrets_set_unknown_target(runner, db_session, store, project, envs):
    result = runner.invoke(
        cli, ["secrets:set", "API_KEY=abc", "-p", "growth", "-e", "staging", "-P", "qa"]
    )

    assert result.exit_code == 1
    db_session.expire_all()
    assert store.find_secret(project.id, envs["staging"].id, "API_KEY") is None


def test_namespaced_command(runner, db_session, secret_service, project, envs):
    secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "k")

    body = invoke_json(runner, ["growth:secrets:list", "-e", "development"])

    assert body["project"] == "growth"
    assert [row["key"] for row in body["secrets"]] == ["API_KEY"]


def test_namespaced_unknown_group(runner, db_session, project):
    result = runner.invoke(cli, ["growth:projects:list"])

    assert result.exit_code != 0


def test_secrets_export(runner, db_session, secret_service, project, envs):
    secret_service.save_secret(project.id, envs["staging"].id, "API_KEY", "abc")
    secret_service.save_secret(project.id, envs["staging"].id, "GREETING", "hello world")

    env_result = runner.invoke(cli, ["secrets:export", "-p", "growth", "-e", "staging"])
    yaml_result = runner.invoke(
        cli, ["secrets:export", "-p", "growth", "-e", "staging", "--format", "yaml"]
    )

    assert env_result.exit_code == 0
    assert env_result.output == 'API_KEY=abc\nGREETING="hello world"\n'
    assert yaml.safe_load(yaml_result.output) == {"API_KEY": "abc", "GREETING": "hello world"}


def test_secrets_export_to_file(runner, db_session, secret_service, project, envs, tmp_path):
    secret_service.save_secret(project.id, envs["staging"].id, "API_KEY", "abc")
    target = tmp_path / ".env.staging"

    result = runner.invoke(
        cli, ["secrets:export", "-p", "growth", "-e", "staging", "-o", str(target)]
    )

    assert result.exit_code == 0
    assert target.read_text() == "API_KEY=abc\n"


def test_users_register(runner, db_session):
    body = invoke_json(runner, ["users:register", "Admin@Example.com"])

    assert body["email"] == "Admin@Example.com"
    assert body["is_admin"] is True


def test_unknown_project_exits_with_error(runner, db_session):
    result = runner.invoke(cli, ["secrets:list", "-p", "nope"])

    assert result.exit_code == 1


def test_unknown_environment_exits_with_error(runner, db_session, project):
    result = runner.invoke(cli, ["secrets:list", "-p", "growth", "-e", "qa", "--json"])

    assert result.exit_code == 1
    assert "qa" in json.loads(result.output)["error"]


def test_secrets_set_writes_operation_log(runner, db_session, settings, project, envs):
    result = runner.invoke(
        cli, ["secrets:set", "API_KEY=abc", "-p", "growth", "-e", "staging"]
    )

    assert result.exit_code == 0, result.output
    logs = list((settings.log_dir / "growth").rglob("*_secrets-set.log"))
    assert len(logs) == 1
    assert "API_KEY saved" in logs[0].read_text()


def test_member_cannot_delete_or_mark_synced(
    runner, db_session, settings, store, member_service, secret_service, project, envs, member_user
):
    member_service.add_member(project.id, member_user.email, [envs["development"].id])
    secret = secret_service.save_secret(project.id, envs["development"].id, "API_KEY", "k")
    secret_id = secret.id
    settings.cli_user = member_user.email

    deleted = runner.invoke(cli, ["secrets:delete", "API_KEY", "-p", "growth", "-e", "development"])
    synced = runner.invoke(cli, ["secrets:sync", "API_KEY", "-p", "growth", "-e", "development"])

    assert deleted.exit_code == 1
    assert synced.exit_code == 1
    db_session.expire_all()
    assert store.get_secret(secret_id).version == 1
