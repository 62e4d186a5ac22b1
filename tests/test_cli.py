"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from fixity import __version__
from fixity.cli import main
from fixity.manifest.store import ManifestStore

from tests.conftest import write_file


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCheckCommand:
    """Tests for `fixity check`."""

    def test_first_run_records_files(self, runner, tmp_path):
        write_file(tmp_path / "a.txt", "alpha")
        result = runner.invoke(main, ["check", "-a", "-p", "1", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "a.txt" in ManifestStore().load(tmp_path)

    def test_new_file_without_append_fails(self, runner, tmp_path):
        write_file(tmp_path / "a.txt", "alpha")
        result = runner.invoke(main, ["check", str(tmp_path)])

        assert result.exit_code == 1
        assert "New file is not allowed" in result.output
        assert not ManifestStore().exists(tmp_path)

    def test_verify_clean_tree(self, runner, tmp_path):
        write_file(tmp_path / "a.txt", "alpha")
        assert runner.invoke(main, ["check", "--append", str(tmp_path)]).exit_code == 0

        result = runner.invoke(main, ["check", "--verify", str(tmp_path)])
        assert result.exit_code == 0, result.output

    def test_config_file_defaults(self, runner, tmp_path):
        data = tmp_path / "data"
        write_file(data / "a.txt", "alpha")
        config = tmp_path / "fixity.yaml"
        config.write_text("policy:\n  allow_new: true\n  parallelism: 1\n")

        result = runner.invoke(main, ["check", "--config", str(config), str(data)])
        assert result.exit_code == 0, result.output

    def test_invalid_config(self, runner, tmp_path):
        config = tmp_path / "fixity.yaml"
        config.write_text("policy:\n  parallelism: 0\n")

        result = runner.invoke(main, ["check", "-c", str(config), str(tmp_path)])
        assert result.exit_code == 1
        assert "Error parsing config" in result.output

    def test_missing_folder_rejected(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path / "nope")])
        assert result.exit_code != 0

    def test_unavailable_b3sum(self, runner, tmp_path):
        result = runner.invoke(
            main,
            ["check", "-a", "--hasher", "b3sum", "--b3sum-path", str(tmp_path / "nope"),
             str(tmp_path)],
        )
        assert result.exit_code == 1
        assert not ManifestStore().exists(tmp_path)


class TestOtherCommands:
    """Tests for `fixity show` and `fixity probe`."""

    def test_show(self, runner, tmp_path):
        write_file(tmp_path / "a.txt", "alpha")
        runner.invoke(main, ["check", "-a", str(tmp_path)])

        result = runner.invoke(main, ["show", str(tmp_path)])
        assert result.exit_code == 0
        assert "a.txt" in result.output

    def test_show_empty(self, runner, tmp_path: Path):
        result = runner.invoke(main, ["show", str(tmp_path)])
        assert result.exit_code == 0
        assert "No entries" in result.output

    def test_probe(self, runner):
        result = runner.invoke(main, ["probe"])
        assert result.exit_code == 0
        assert "xxhash" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert __version__ in result.output
