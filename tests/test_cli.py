from pathlib import Path

import pytest
from click.testing import CliRunner

from earlybadge.cli import cli
from earlybadge.server.core import DEFAULT_REGISTRY_ID


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "EARLYBADGE_NETWORK_URL",
        "EARLYBADGE_REGISTRY_ID",
        "EARLYBADGE_IDENTITY_PROVIDER",
        "EARLYBADGE_NETWORK",
        "EARLYBADGE_KEYS_DIR",
    ):
        monkeypatch.delenv(var, raising=False)


def test_cli_help() -> None:
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "mint" in result.output


def test_cli_keygen(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test keygen command."""
    keys_dir = tmp_path / "keys"
    monkeypatch.setenv("EARLYBADGE_KEYS_DIR", str(keys_dir))
    runner = CliRunner()

    result = runner.invoke(cli, ["keygen", "--keys-dir", str(keys_dir)])

    assert result.exit_code == 0
    assert "Keys generated and saved" in result.output
    assert (keys_dir / "root_private.key").exists()
    assert (keys_dir / "root_public.key").exists()


def test_cli_keygen_identity(tmp_path: Path) -> None:
    identity = tmp_path / "alice.pem"
    runner = CliRunner()

    result = runner.invoke(cli, ["keygen", "--identity", str(identity)])

    assert result.exit_code == 0
    assert "Identity saved, principal" in result.output
    assert identity.exists()


def test_cli_serve_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["serve", "--help"])
    assert result.exit_code == 0
    assert "Start the development replica" in result.output


def test_cli_missing_configuration() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["supply"])
    assert result.exit_code == 1
    assert "Missing required configuration" in result.output


def test_cli_mint_with_missing_key_file(tmp_path: Path) -> None:
    """Test login failures are reported without a traceback."""
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--network-url",
            "http://127.0.0.1:4943",
            "--registry-id",
            DEFAULT_REGISTRY_ID.to_text(),
            "--identity-provider",
            "http://127.0.0.1:4943",
            "--key-file",
            str(tmp_path / "missing.pem"),
            "mint",
        ],
    )
    assert result.exit_code == 1
    assert "Authentication denied" in result.output
