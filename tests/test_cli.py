"""Tests for the command-line front end."""

import json
import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from testautomator.cli import cli
from testautomator.models.config import AdvisorConfig


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _suggest_args(png_file, *extra):
    return ["suggest", "--url", "https://dev-dash.janitri.in/", "-l", "#login-button",
            "-s", str(png_file), *extra]


class TestSuggestCommand:
    """Tests for `testautomator suggest`."""

    def test_json_output(self, runner, png_file, fake_client, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=fake_client):
                result = runner.invoke(cli, _suggest_args(png_file, "--json"))

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "suggestedLocators": ["#loginBtn", "[data-testid=login]"],
            "reasoning": "ID is present but generic; prefer a test-id attribute.",
        }
        assert fake_client.call_count == 1
        media = [p for p in fake_client.calls[0][0] if p.is_media]
        assert media[0].media_url.startswith("data:image/png;base64,")

    def test_table_output(self, runner, png_file, fake_client, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=fake_client):
                result = runner.invoke(cli, _suggest_args(png_file))

        assert result.exit_code == 0, result.output
        assert "#loginBtn" in result.stdout
        assert "[data-testid=login]" in result.stdout
        assert "Reasoning" in result.stdout

    def test_empty_suggestions_message(self, runner, png_file, make_client, tmp_path):
        client = make_client(reply={"suggestedLocators": [], "reasoning": "Already robust."})
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=client):
                result = runner.invoke(cli, _suggest_args(png_file))

        assert result.exit_code == 0
        assert "No alternative locators suggested" in result.stdout

    def test_invalid_url_exits_before_any_call(self, runner, png_file, fake_client, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=fake_client) as factory:
                result = runner.invoke(
                    cli, ["suggest", "--url", "not-a-url", "-l", "#a", "-s", str(png_file)]
                )

        assert result.exit_code == 2
        assert "Please enter a valid URL." in result.stdout
        factory.assert_not_called()
        assert fake_client.call_count == 0

    def test_blank_locator_rejected(self, runner, png_file, fake_client, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=fake_client):
                result = runner.invoke(
                    cli, ["suggest", "--url", "https://example.com", "-l", "  ", "-s", str(png_file)]
                )

        assert result.exit_code == 2
        assert "Locator cannot be empty." in result.stdout
        assert fake_client.call_count == 0

    def test_non_image_screenshot_rejected(self, runner, text_file, fake_client, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=fake_client):
                result = runner.invoke(cli, _suggest_args(text_file))

        assert result.exit_code == 2
        assert "Please upload an image file" in result.stdout
        assert fake_client.call_count == 0

    def test_missing_screenshot_file(self, runner, tmp_path):
        result = runner.invoke(cli, _suggest_args(tmp_path / "missing.png"))
        assert result.exit_code != 0

    def test_service_failure_reports_reason(self, runner, png_file, make_client, tmp_path):
        client = make_client(error=ConnectionError("offline"))
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=client):
                result = runner.invoke(cli, _suggest_args(png_file))

        assert result.exit_code == 1
        assert "Failed to get suggestions" in result.stdout
        assert "service_unavailable" in result.stdout
        assert client.call_count == 1

    def test_contract_violation_reports_reason(self, runner, png_file, make_client, tmp_path):
        client = make_client(reply={"suggestedLocators": "#a"})
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch("testautomator.cli.build_model_client", return_value=client):
                result = runner.invoke(cli, _suggest_args(png_file))

        assert result.exit_code == 1
        assert "contract_violation" in result.stdout

    def test_missing_api_key(self, runner, png_file, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(cli, _suggest_args(png_file))

        assert result.exit_code == 1
        assert "ANTHROPIC_API_KEY" in result.stdout

    def test_url_defaults_to_config(self, runner, png_file, fake_client, temp_config_file):
        with patch("testautomator.cli.build_model_client", return_value=fake_client):
            result = runner.invoke(
                cli,
                ["suggest", "-c", str(temp_config_file), "-l", "#a", "-s", str(png_file), "--json"],
            )

        assert result.exit_code == 0, result.output
        assert fake_client.call_count == 1

    def test_explicit_missing_config(self, runner, png_file, tmp_path):
        result = runner.invoke(
            cli, _suggest_args(png_file, "-c", str(tmp_path / "nope.json"))
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.stdout


class TestInitCommand:
    """Tests for `testautomator init`."""

    def test_creates_default_config(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["init"])
            assert result.exit_code == 0, result.output
            cfg = AdvisorConfig.load("testautomator.json")

        assert cfg == AdvisorConfig()

    def test_custom_url(self, runner, tmp_path):
        path = tmp_path / "cfg.json"
        result = runner.invoke(cli, ["init", "--url", "https://example.com/", "-c", str(path)])
        assert result.exit_code == 0
        assert AdvisorConfig.load(path).default_url == "https://example.com/"

    def test_invalid_url(self, runner, tmp_path):
        path = tmp_path / "cfg.json"
        result = runner.invoke(cli, ["init", "--url", "nope", "-c", str(path)])
        assert result.exit_code == 2
        assert not path.exists()

    def test_declining_overwrite_keeps_file(self, runner, temp_config_file):
        before = temp_config_file.read_text()
        result = runner.invoke(cli, ["init", "-c", str(temp_config_file)], input="n\n")
        assert result.exit_code == 0
        assert temp_config_file.read_text() == before
