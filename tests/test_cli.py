import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from api_doc_import.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliDetect:
    def test_detect_openapi(self):
        result = CliRunner().invoke(main, ["detect", str(FIXTURES / "petstore.json")])
        assert result.exit_code == 0
        assert "Type: openapi (confidence 0.95)" in result.output
        assert "Supported: yes" in result.output

    def test_detect_yaml(self):
        result = CliRunner().invoke(main, ["detect", str(FIXTURES / "petstore.yaml")])
        assert result.exit_code == 0
        assert "Type: unknown" in result.output
        assert "Supported: no" in result.output


class TestCliParse:
    def test_parse_to_stdout_json(self):
        result = CliRunner().invoke(main, ["parse", str(FIXTURES / "sample.postman_collection.json")])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["collection_name"] == "User Service"
        assert len(data["requests"]) == 3

    def test_parse_to_yaml_file(self, tmp_path):
        output = tmp_path / "out" / "petstore.yaml"
        result = CliRunner().invoke(main, [
            "parse", str(FIXTURES / "petstore.json"),
            "--format", "yaml",
            "-o", str(output),
        ])
        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert data["file_type"] == "openapi"
        assert len(data["requests"]) == 4

    def test_parse_unsupported_fails(self):
        result = CliRunner().invoke(main, ["parse", str(FIXTURES / "petstore.yaml")])
        assert result.exit_code == 1
        assert "Cannot process petstore.yaml" in result.output


class TestCliSessions:
    def test_sessions_with_bearer_and_hostname(self, tmp_path):
        result = CliRunner().invoke(main, [
            "sessions", str(FIXTURES / "petstore.json"),
            "-o", str(tmp_path),
            "--auth-type", "bearer",
            "--token", "T1",
            "--hostname", "staging.local",
        ])
        assert result.exit_code == 0, result.output
        assert 'Created 4 of 4 sessions in collection "Petstore"' in result.output

        files = sorted((tmp_path / "petstore").glob("*.json"))
        assert len(files) == 4
        first = json.loads(files[0].read_text(encoding="utf-8"))
        assert first["name"] == "GET /v1/pets"
        assert first["spec"]["host"] == "staging.local"
        assert first["spec"]["headers"]["Authorization"] == "Bearer T1"

    def test_missing_credentials_is_usage_error(self, tmp_path):
        result = CliRunner().invoke(main, [
            "sessions", str(FIXTURES / "petstore.json"),
            "-o", str(tmp_path),
            "--auth-type", "basic",
            "--username", "alice",
        ])
        assert result.exit_code == 2
        assert "password" in result.output

    def test_environment_file_rejected(self, tmp_path):
        result = CliRunner().invoke(main, [
            "sessions", str(FIXTURES / "dev.postman_environment.json"),
            "-o", str(tmp_path),
        ])
        assert result.exit_code == 2


class TestCliEnv:
    def test_env_writes_enabled_variables(self, tmp_path):
        result = CliRunner().invoke(main, ["env", str(FIXTURES / "dev.postman_environment.json"), "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        data = json.loads((tmp_path / "Dev.json").read_text(encoding="utf-8"))
        assert [v["name"] for v in data["variables"]] == ["baseUrl", "api_token"]
        assert data["variables"][1]["secret"] is True

    def test_env_name_collision_gets_suffix(self, tmp_path):
        runner = CliRunner()
        args = ["env", str(FIXTURES / "dev.postman_environment.json"), "-o", str(tmp_path)]
        runner.invoke(main, args)
        result = runner.invoke(main, args)
        assert result.exit_code == 0
        assert (tmp_path / "Dev-1.json").exists()

    def test_env_rejects_collection(self, tmp_path):
        result = CliRunner().invoke(main, ["env", str(FIXTURES / "petstore.json"), "-o", str(tmp_path)])
        assert result.exit_code == 2
