"""Tests for the surface-pruner CLI."""

import json

import pytest
from click.testing import CliRunner

from surface_pruner.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, *args):
    return runner.invoke(cli, list(args), obj={})


class TestPruneCommand:
    """Test the prune command."""

    def test_prune_with_defaults(self, runner, sample_spec_file):
        """Default settings drop the content API and the app parameter."""
        result = invoke(runner, "prune", str(sample_spec_file))

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "/api/content/{app}/{schema}" not in data["paths"]
        assert "ContentsDto" not in data["components"]["schemas"]
        assert "SchemaDto" in data["components"]["schemas"]
        assert "Removed paths: 1" in result.stderr

    def test_prune_with_options(self, runner, sample_spec_file):
        """Command-line prefixes replace the configured ones."""
        result = invoke(
            runner,
            "prune",
            str(sample_spec_file),
            "--exclude-prefix",
            "/api/ping",
            "--strip-param",
            "name",
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "/api/ping" not in data["paths"]
        assert "/api/content/{app}/{schema}" in data["paths"]
        assert "ErrorDto" not in data["components"]["schemas"]
        put = data["paths"]["/api/apps/{app}/schemas/{name}"]["put"]
        assert [p["name"] for p in put["parameters"]] == ["app"]

    def test_no_exclude_and_no_strip(self, runner, sample_spec_file):
        """Configured prefixes and parameter names can be switched off."""
        result = invoke(runner, "prune", str(sample_spec_file), "--no-exclude", "--no-strip")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "/api/content/{app}/{schema}" in data["paths"]
        assert "ContentsDto" in data["components"]["schemas"]
        put = data["paths"]["/api/apps/{app}/schemas/{name}"]["put"]
        assert [p["name"] for p in put["parameters"]] == ["app", "name"]
        assert "Removed paths: 0" in result.stderr
        assert "Stripped parameters: 0" in result.stderr

    def test_no_exclude_conflicts_with_prefix(self, runner, sample_spec_file):
        result = invoke(
            runner, "prune", str(sample_spec_file), "--no-exclude", "--exclude-prefix", "/api"
        )

        assert result.exit_code == 2
        assert "--no-exclude" in result.stderr

    def test_prune_yaml_output(self, runner, sample_spec_file):
        result = invoke(runner, "prune", str(sample_spec_file), "--output-format", "yaml")

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("openapi:")

    def test_summary_only(self, runner, sample_spec_file):
        result = invoke(runner, "prune", str(sample_spec_file), "--summary-only")

        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert "Removed definitions: 4" in result.stderr

    def test_malformed_reference(self, runner, tmp_path, sample_openapi_3_spec):
        """A dangling reference exits with the malformed graph status."""
        del sample_openapi_3_spec["components"]["schemas"]["FieldDto"]
        spec_file = tmp_path / "broken.json"
        spec_file.write_text(json.dumps(sample_openapi_3_spec), encoding="utf-8")

        result = invoke(runner, "prune", str(spec_file))

        assert result.exit_code == 4
        assert "FieldDto" in result.stderr

    def test_unreadable_document(self, runner, tmp_path):
        spec_file = tmp_path / "notes.json"
        spec_file.write_text('{"title": "not an api"}', encoding="utf-8")

        result = invoke(runner, "prune", str(spec_file))

        assert result.exit_code == 3

    def test_invalid_prefix(self, runner, sample_spec_file):
        result = invoke(runner, "prune", str(sample_spec_file), "--exclude-prefix", "api")

        assert result.exit_code == 2
        assert "exclude_prefixes" in result.stderr


class TestInspectCommand:
    """Test the inspect command."""

    def test_inspect_counts(self, runner, sample_spec_file):
        result = invoke(runner, "inspect", str(sample_spec_file))

        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        schema_line = next(line for line in lines if line.startswith("SchemaDto "))
        assert schema_line.split()[1] == "3"
        legacy_line = next(line for line in lines if line.startswith("LegacyDto "))
        assert "unreachable" in legacy_line

    def test_inspect_clients(self, runner, sample_spec_file):
        result = invoke(runner, "inspect", str(sample_spec_file))

        lines = result.stdout.splitlines()
        header = next(i for i, line in enumerate(lines) if line.startswith("CLIENT"))
        clients = dict(line.split() for line in lines[header + 2:] if line.strip())
        assert clients == {"Contents": "1", "Ping": "1", "Schemas": "2"}


class TestGroupOptions:

    def test_invalid_log_level(self, runner, sample_spec_file):
        result = invoke(runner, "--log-level", "LOUD", "inspect", str(sample_spec_file))

        assert result.exit_code == 2
