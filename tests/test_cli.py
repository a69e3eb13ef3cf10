"""
CLI interface tests for the buildpack manifest validator.
Tests the command-line interface and exit statuses.
"""

import json

from click.testing import CliRunner

from buildpack_manifest.main import cli

from conftest import default_yaml, dependency_yaml, manifest_with


def invalid_defaults_manifest(write_manifest):
    return write_manifest(
        manifest_with(
            default_yaml("ruby", "1.1.1") + default_yaml("ruby", "2.0.0"),
            dependency_yaml("ruby", "1.1.1"),
        )
    )


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test CLI help message."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "buildpack manifest" in result.output.lower()

    def test_cli_version(self):
        """Test CLI version display."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_info_command(self):
        """Test the info command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "default_versions" in result.output


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_manifest(self, valid_manifest):
        """Test validating a well-formed manifest."""
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(valid_manifest)])

        assert result.exit_code == 0
        assert "valid buildpack manifest" in result.output

    def test_consistency_errors_fail(self, write_manifest):
        """Test that default version errors print the diagnostic and exit 1."""
        path = invalid_defaults_manifest(write_manifest)

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "The buildpack manifest is malformed:" in result.output
        assert "- ruby had more than one 'default_versions' entry" in result.output
        assert "entry for ruby 2.0.0 was specified" in result.output
        assert "specifying-default-versions" in result.output

    def test_schema_errors_fail(self, write_manifest):
        """Test that schema errors are shown in a table."""
        path = write_manifest("language: ruby\ndependencies:\n- name: ruby\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Schema Errors" in result.output

    def test_nonexistent_manifest(self, temp_dir):
        """Test validating a manifest that does not exist."""
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(temp_dir / "missing.yml")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_quiet_valid_manifest_prints_nothing(self, valid_manifest):
        """Test quiet mode with a valid manifest."""
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(valid_manifest), "--quiet"])

        assert result.exit_code == 0
        assert result.output == ""

    def test_quiet_invalid_manifest(self, write_manifest):
        """Test quiet mode still prints the diagnostic."""
        path = invalid_defaults_manifest(write_manifest)

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(path), "-q"])

        assert result.exit_code == 1
        assert "The buildpack manifest is malformed:" in result.output

    def test_json_output(self, write_manifest):
        """Test JSON output format."""
        path = invalid_defaults_manifest(write_manifest)

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(path), "--output-format", "json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["valid"] is False
        assert len(data["errors"]["default_versions_errors"]) == 2

    def test_json_output_file(self, valid_manifest, tmp_path):
        """Test saving JSON results to a file."""
        output_file = tmp_path / "report.json"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["validate", str(valid_manifest), "--output-format", "json", "-o", str(output_file)],
        )

        assert result.exit_code == 0
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data == {"manifest": str(valid_manifest), "valid": True, "errors": {}}

    def test_output_file_requires_json(self, valid_manifest, tmp_path):
        """Test that an output file needs JSON format."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["validate", str(valid_manifest), "-o", str(tmp_path / "out.json")]
        )

        assert result.exit_code != 0
        assert "JSON format" in result.output

    def test_custom_schema(self, valid_manifest, tmp_path):
        """Test validating against a custom schema."""
        schema_file = tmp_path / "schema.json"
        schema_file.write_text(json.dumps({"type": "object", "required": ["stack"]}))

        runner = CliRunner()
        result = runner.invoke(
            cli, ["validate", str(valid_manifest), "--schema", str(schema_file)]
        )

        assert result.exit_code == 1

    def test_broken_schema_is_reported(self, valid_manifest, tmp_path):
        """Test that an unreadable schema is a CLI error."""
        schema_file = tmp_path / "schema.json"
        schema_file.write_text("{not json")

        runner = CliRunner()
        result = runner.invoke(
            cli, ["validate", str(valid_manifest), "--schema", str(schema_file)]
        )

        assert result.exit_code == 1
        assert "Invalid JSON in schema file" in result.output

    def test_output_format_from_environment(self, valid_manifest, monkeypatch):
        """Test output format taken from the environment."""
        monkeypatch.setenv("BUILDPACK_MANIFEST_OUTPUT_FORMAT", "json")

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(valid_manifest)])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["valid"] is True


class TestBatchCommand:
    """Test the batch validation functionality."""

    def test_batch_all_valid(self, valid_manifest, write_manifest):
        """Test batch validation of valid manifests."""
        other = write_manifest(
            "language: go\ndependencies:\n" + dependency_yaml("go", "1.8"), name="go.yml"
        )

        runner = CliRunner()
        result = runner.invoke(cli, ["batch", str(valid_manifest), str(other)])

        assert result.exit_code == 0
        assert "Manifests checked: 2" in result.output
        assert "Malformed: 0" in result.output

    def test_batch_with_invalid_manifest(self, valid_manifest, write_manifest):
        """Test batch validation with a malformed manifest."""
        path = write_manifest(
            manifest_with(default_yaml("ruby", "1.1.1"), dependency_yaml("python", "3.3.5")),
            name="broken.yml",
        )

        runner = CliRunner()
        result = runner.invoke(cli, ["batch", str(valid_manifest), str(path)])

        assert result.exit_code == 1
        assert "Malformed: 1" in result.output

    def test_batch_json(self, valid_manifest, write_manifest):
        """Test batch JSON output."""
        path = invalid_defaults_manifest(write_manifest)

        runner = CliRunner()
        result = runner.invoke(
            cli, ["batch", str(valid_manifest), str(path), "--output-format", "json"]
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [entry["valid"] for entry in data] == [True, False]

    def test_batch_json_single_manifest_is_a_list(self, valid_manifest):
        """Test batch JSON output is a list for one manifest."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["batch", str(valid_manifest), "--output-format", "json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert isinstance(data, list)
        assert data[0]["manifest"] == str(valid_manifest)

    def test_batch_output_format_from_environment(self, valid_manifest, monkeypatch):
        """Test batch output format taken from the environment."""
        monkeypatch.setenv("BUILDPACK_MANIFEST_OUTPUT_FORMAT", "json")

        runner = CliRunner()
        result = runner.invoke(cli, ["batch", str(valid_manifest)])

        assert result.exit_code == 0
        assert [entry["valid"] for entry in json.loads(result.stdout)] == [True]


class TestConfigCommands:
    """Test configuration management commands."""

    def test_config_init(self, tmp_path):
        """Test config init command."""
        config_path = tmp_path / "config.json"

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])

        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["security"]["max_file_size_mb"] == 10

    def test_config_init_does_not_overwrite(self, tmp_path):
        """Test config init keeps an existing file."""
        config_path = tmp_path / "config.json"
        config_path.write_text("{}")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert config_path.read_text() == "{}"

    def test_config_show(self):
        """Test config show command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Max File Size: 10 MB" in result.output

    def test_config_validate_valid(self, tmp_path):
        """Test config validate with a valid file."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"security": {"max_file_size_mb": 5}}))

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_path)])

        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_config_validate_invalid(self, tmp_path):
        """Test config validate with an invalid value."""
        config_path = tmp_path / "config.yml"
        config_path.write_text("validation:\n  output_format: xml\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_path)])

        assert result.exit_code == 1
        assert "output_format" in result.output

    def test_config_validate_wrong_types(self, tmp_path):
        """Test config validate with wrongly typed settings."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps({"validation": "json", "security": {"max_file_size_mb": "10"}})
        )

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "validation must be a mapping" in result.output
        assert "max_file_size_mb must be an integer" in result.output

    def test_validate_with_badly_typed_project_config(self, valid_manifest, tmp_path):
        """Test validate falls back to defaults for a bad project config."""
        (tmp_path / ".buildpack-manifest.json").write_text(
            json.dumps({"logging": {"log_level": 5}, "security": "big"})
        )

        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(valid_manifest)])

        assert result.exit_code == 0
        assert "valid buildpack manifest" in result.output
