"""
CLI smoke tests with the fake store.

Tests basic CLI functionality and command wiring without a Docker engine.
Validates that all commands can be invoked, produce the expected output
formats, and exit with the mapped codes on failure.
"""
from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from image_loader.cli import app
from image_loader.cli_context import CLIContext


@pytest.fixture
def config_file(tmp_path, oci_config):
    path = tmp_path / "config.json"
    path.write_text(oci_config.model_dump_json(by_alias=True, exclude_none=True))
    return path


class TestCLISmokeTests:
    """Smoke tests for CLI commands with the fake store."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def _load(self, archive, config_file, *extra):
        return self.runner.invoke(app, [
            "load", str(archive), "app:v1", "app:latest",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--store", "fake",
            *extra,
        ])

    def test_load_human_output(self, archive, config_file):
        """Test load with human-readable output."""
        result = self._load(archive, config_file)

        assert result.exit_code == 0, result.output
        assert "Loaded image ID sha256:aaa" in result.stdout
        assert "Tagged image with app:v1" in result.stdout
        assert "Tagged image with app:latest" in result.stdout
        assert "Load time:" in result.stdout

    def test_load_json_output(self, archive, config_file):
        """Test that --output json prints the ledger record."""
        result = self._load(archive, config_file, "--output", "json")

        assert result.exit_code == 0, result.output
        record = json.loads(result.stdout.strip().splitlines()[-1])
        assert record["digest"] == "sha256:aaa"
        assert record["alreadyLoaded"] is False
        assert record["tagsAdded"] == ["app:v1", "app:latest"]
        assert record["tagsAlreadyPresent"] == []
        assert record["loadTime"]

    def test_load_store_from_env(self, archive, config_file, monkeypatch):
        """Test that the store override can come from the environment."""
        monkeypatch.setenv("IMAGE_LOADER_STORE", "fake")
        result = self.runner.invoke(app, [
            "load", str(archive), "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
        ])

        assert result.exit_code == 0, result.output
        assert "Loaded image ID sha256:aaa" in result.stdout

    def test_load_writes_log_file(self, archive, config_file, tmp_path):
        """Test that --log-to-file captures the workflow log."""
        log_path = tmp_path / "load.log"

        result = self._load(archive, config_file, "--log-to-file", str(log_path))

        assert result.exit_code == 0, result.output
        contents = log_path.read_text()
        assert "Checking for image ID: sha256:aaa" in contents
        assert "Tagged image sha256:aaa with app:v1" in contents

    def test_check_not_found(self, config_file):
        """Test check against an empty store."""
        result = self.runner.invoke(app, [
            "check", "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--store", "fake",
        ])

        assert result.exit_code == 0, result.output
        assert "not found; a full load is required" in result.stdout

    def test_check_json_output(self, config_file):
        """Test that check adds the found flag to the record."""
        result = self.runner.invoke(app, [
            "check", "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--output", "json",
            "--store", "fake",
        ])

        assert result.exit_code == 0, result.output
        record = json.loads(result.stdout.strip().splitlines()[-1])
        assert record["found"] is False
        assert record["alreadyLoaded"] is False

    def test_context_closed_after_each_command(self, archive, config_file, monkeypatch):
        """Test that every command closes its CLI context, on success and failure."""
        closed = []
        monkeypatch.setattr(CLIContext, "close", lambda self: closed.append(True))

        self._load(archive, config_file)
        self.runner.invoke(app, ["images", "--store", "fake"])
        failed = self.runner.invoke(app, [
            "check", "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--store", "podman",
        ])

        assert failed.exit_code == 2
        assert closed == [True, True, True]

    def test_images_empty_store(self):
        """Test listing an empty store."""
        result = self.runner.invoke(app, ["images", "--store", "fake"])

        assert result.exit_code == 0, result.output
        assert "No images in store" in result.stdout


class TestCLIErrors:
    """Test exit codes for failing invocations."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_missing_config_exits_2(self, archive, tmp_path):
        """Test that an unreadable config is a desired-state error."""
        result = self.runner.invoke(app, [
            "load", str(archive), "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(tmp_path / "missing.json"),
            "--store", "fake",
        ])

        assert result.exit_code == 2
        assert "Error: failed to read config" in result.output

    def test_missing_archive_exits_2(self, config_file, tmp_path):
        """Test that a missing archive fails before loading."""
        result = self.runner.invoke(app, [
            "load", str(tmp_path / "missing.tar"), "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--store", "fake",
        ])

        assert result.exit_code == 2
        assert "error opening archive" in result.output

    def test_unknown_output_format_exits_2(self, archive, config_file):
        """Test that an unsupported output format is rejected."""
        result = self.runner.invoke(app, [
            "load", str(archive), "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--output", "yaml",
            "--store", "fake",
        ])

        assert result.exit_code == 2
        assert "Unknown output format" in result.output

    def test_unknown_store_exits_2(self, config_file):
        """Test that an unknown store name is rejected."""
        result = self.runner.invoke(app, [
            "check", "app:v1",
            "--digest", "sha256:aaa",
            "--config", str(config_file),
            "--store", "podman",
        ])

        assert result.exit_code == 2
        assert "Unknown store 'podman'" in result.output

    def test_missing_digest_is_usage_error(self, archive, config_file):
        """Test that --digest is required."""
        result = self.runner.invoke(app, [
            "load", str(archive), "app:v1",
            "--config", str(config_file),
            "--store", "fake",
        ])

        assert result.exit_code != 0
