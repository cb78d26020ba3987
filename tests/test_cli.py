import json

import pytest
from click.testing import CliRunner

from authsync import cli as cli_module
from authsync.cli import cli

SCHEMA = """
type Query {
    getSecret: String!
        @auth(rules: [{ allow: public, provider: iam }])
        @function(name: "getSecret")
}
"""

AUTH_CONFIG = {
    "defaultAuthentication": {"authenticationType": "AMAZON_COGNITO_USER_POOLS"},
    "additionalAuthenticationProviders": [{"authenticationType": "AWS_IAM"}],
}


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    logs = tmp_path / "logs"
    monkeypatch.setattr(cli_module, "user_log_dir", lambda _: str(logs))
    return logs


@pytest.fixture
def project(tmp_path):
    schema_path = tmp_path / "schema.graphql"
    schema_path.write_text(SCHEMA)
    config_path = tmp_path / "auth.json"
    config_path.write_text(json.dumps(AUTH_CONFIG))
    return tmp_path, schema_path, config_path


def test_compile_writes_schema_and_stack(project):
    tmp_path, schema_path, config_path = project
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(out_dir),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "@aws_iam" in (out_dir / "schema.graphql").read_text()
    stack = json.loads((out_dir / "stack.json").read_text())
    assert set(stack["Resources"]) == {"AuthRolePolicy01", "UnauthRolePolicy01"}
    assert set(stack["Parameters"]) == {"authRoleName", "unauthRoleName"}
    assert "AuthRolePolicy01" in result.output


def test_compile_without_policies(project):
    tmp_path, schema_path, config_path = project
    schema_path.write_text("type Query { hello: String }")

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(tmp_path / "out"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "No IAM policies needed." in result.output


def test_compile_reports_transform_errors(project):
    tmp_path, schema_path, config_path = project
    schema_path.write_text("type Post @auth(rules: [{ allow: owner }]) { id: ID! }")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(out_dir),
        ],
    )

    assert result.exit_code == 1
    assert "must also be annotated with @model" in " ".join(result.output.split())
    assert not out_dir.exists()


def test_compile_rejects_invalid_auth_config(project):
    tmp_path, schema_path, config_path = project
    config_path.write_text(json.dumps({"additionalAuthenticationProviders": []}))

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(tmp_path / "out"),
        ],
    )

    assert result.exit_code == 1
    assert "Invalid auth config" in result.output


def test_compile_rejects_zero_max_resources(project):
    tmp_path, schema_path, config_path = project

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--max-resources-per-policy",
            "0",
        ],
    )

    assert result.exit_code == 2


def test_compile_logs_to_file(project, log_dir):
    tmp_path, schema_path, config_path = project

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(tmp_path / "out"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert log_dir.is_dir()


@pytest.mark.parametrize(
    "config",
    [
        {"defaultAuthentication": "API_KEY"},
        {
            "defaultAuthentication": {"authenticationType": "API_KEY"},
            "additionalAuthenticationProviders": ["AWS_IAM"],
        },
    ],
)
def test_compile_rejects_malformed_auth_config(project, config):
    tmp_path, schema_path, config_path = project
    config_path.write_text(json.dumps(config))

    result = CliRunner().invoke(
        cli,
        [
            "compile",
            str(schema_path),
            "--auth-config",
            str(config_path),
            "--out-dir",
            str(tmp_path / "out"),
        ],
    )

    assert result.exit_code == 1
    assert "Invalid auth config" in result.output
    assert not isinstance(result.exception, AttributeError)
