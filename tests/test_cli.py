"""Tests for the curator command-line interface."""

from click.testing import CliRunner

from curator import __version__
from curator.cli import main

ENV = {"CURATOR_STORE": "memory", "LOG_LEVEL": "WARNING"}


def invoke(*args):
    return CliRunner().invoke(main, list(args), env=ENV)


def test_version():
    result = invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_empty_listings():
    assert "No generations found." in invoke("generations", "--unscored").output
    assert "No generations found." in invoke("feed", "--mode", "video").output


def test_score_out_of_band_is_usage_error():
    result = invoke("score", "g1", "5")
    assert result.exit_code == 2
    assert "between 9 and 10" in result.output


def test_score_missing_generation():
    result = invoke("score", "ghost", "9.5")
    assert result.exit_code == 1
    assert "Generation not found" in result.output


def test_audit_empty():
    assert "No audit entries." in invoke("audit").output
