"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from altsplice import __version__
from altsplice.cli import main


def report_types(text: str) -> list[str]:
    return [line.split("\t")[2] for line in text.splitlines() if line.count("\t") == 8]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestMainGroup:
    """Tests for the command group."""

    def test_help(self, runner) -> None:
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "find" in result.output
        assert "stats" in result.output

    def test_version(self, runner) -> None:
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_find_help_lists_options(self, runner) -> None:
        result = runner.invoke(main, ["find", "--help"])
        assert result.exit_code == 0
        for option in ("--input", "--output", "--relax", "--constitutives", "--limit", "--statistics"):
            assert option in result.output


@pytest.mark.integration
class TestFindCommand:
    """Tests for the find command."""

    def test_write_report_file(self, runner, sample_gtf, tmp_path) -> None:
        output = tmp_path / "events.gff"

        result = runner.invoke(main, ["find", "-i", str(sample_gtf), "-o", str(output)])

        assert result.exit_code == 0, result.output
        lines = output.read_text().splitlines()
        assert report_types(output.read_text()) == ["CNE", "CNE", "CE", "CNE", "AT"]
        assert lines[2].split("\t")[:8] == ["1", "Ensembl", "CE", "101", "400", ".", "+", "."]
        assert lines[4].split("\t")[:8] == ["2", "Ensembl", "AT", "1001", "1100", ".", "-", "."]

    def test_read_stdin_write_stdout(self, runner, sample_gtf_text) -> None:
        result = runner.invoke(main, ["find"], input=sample_gtf_text)

        assert result.exit_code == 0
        assert "\tCE\t101\t400\t" in result.output
        assert "\tAT\t1001\t1100\t" in result.output

    def test_constitutives_only(self, runner, sample_gtf, tmp_path) -> None:
        output = tmp_path / "events.gff"

        result = runner.invoke(main, ["find", "-i", str(sample_gtf), "-o", str(output), "--constitutives"])

        assert result.exit_code == 0
        assert report_types(output.read_text()) == ["CNE", "CNE", "CNE"]

    def test_limit(self, runner, sample_gtf, tmp_path) -> None:
        output = tmp_path / "events.gff"

        result = runner.invoke(main, ["find", "-i", str(sample_gtf), "-o", str(output), "-l", "1"])

        assert result.exit_code == 0
        assert report_types(output.read_text()) == ["CNE", "CNE", "CE"]

    def test_statistics(self, runner, sample_gtf, tmp_path) -> None:
        result = runner.invoke(
            main, ["find", "-i", str(sample_gtf), "-o", str(tmp_path / "events.gff"), "--statistics"]
        )

        assert result.exit_code == 0
        assert "Genes parsed" in result.output
        assert "Constitutive exons" in result.output

    def test_yaml_config_file(self, runner, sample_gtf, tmp_path) -> None:
        config = tmp_path / "altsplice.yaml"
        config.write_text("altsplice:\n  datasource: Vega\n  constitutives_only: true\n")
        output = tmp_path / "events.gff"

        result = runner.invoke(
            main, ["find", "-i", str(sample_gtf), "-o", str(output), "--config", str(config)]
        )

        assert result.exit_code == 0
        assert {line.split("\t")[1] for line in output.read_text().splitlines()} == {"Vega"}
        assert set(report_types(output.read_text())) == {"CNE"}

    def test_config_file_and_override(self, runner, sample_gtf, tmp_path) -> None:
        config = tmp_path / "altsplice.toml"
        config.write_text('[altsplice]\ndatasource = "Vega"\nconstitutives_only = true\n')
        output = tmp_path / "events.gff"

        result = runner.invoke(
            main, ["find", "-i", str(sample_gtf), "-o", str(output), "--config", str(config)]
        )
        assert result.exit_code == 0
        lines = output.read_text().splitlines()
        assert {line.split("\t")[1] for line in lines} == {"Vega"}
        assert set(report_types(output.read_text())) == {"CNE"}

        result = runner.invoke(
            main,
            ["find", "-i", str(sample_gtf), "-o", str(output), "--config", str(config), "--datasource", "Test"],
        )
        assert result.exit_code == 0
        assert {line.split("\t")[1] for line in output.read_text().splitlines()} == {"Test"}

    def test_log_file(self, runner, sample_gtf, tmp_path) -> None:
        log_file = tmp_path / "run.log"

        result = runner.invoke(
            main,
            ["--log-file", str(log_file), "find", "-i", str(sample_gtf), "-o", str(tmp_path / "events.gff")],
        )

        assert result.exit_code == 0
        assert "Splicing analysis completed" in log_file.read_text()


class TestErrors:
    """Fatal errors exit with status 1."""

    def test_missing_input(self, runner, tmp_path) -> None:
        result = runner.invoke(main, ["find", "-i", str(tmp_path / "missing.gtf")])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_malformed_input(self, runner, tmp_path) -> None:
        path = tmp_path / "bad.gtf"
        path.write_text("1\tensembl\texon\t1\n")

        result = runner.invoke(main, ["find", "-i", str(path), "-o", str(tmp_path / "events.gff")])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_invalid_config(self, runner, sample_gtf, tmp_path) -> None:
        config = tmp_path / "altsplice.toml"
        config.write_text("limit = -3\n")

        result = runner.invoke(main, ["find", "-i", str(sample_gtf), "--config", str(config)])

        assert result.exit_code == 1
        assert "limit" in result.output


@pytest.mark.integration
class TestStatsCommand:
    """Tests for the stats command."""

    def test_stats_table(self, runner, sample_gtf) -> None:
        result = runner.invoke(main, ["stats", "-i", str(sample_gtf)])

        assert result.exit_code == 0
        assert "Genes parsed" in result.output
        assert "Cassette exon events" in result.output
        assert "\tCE\t" not in result.output
