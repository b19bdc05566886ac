"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from boostedge.pipeline import cli as cli_module
from boostedge.pipeline.cli import LINT_FAILED_EXIT_CODE, cli, read_offers, run_resolve
from boostedge.pipeline.engine import OfferEngine


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def offers_path(temp_dir: Path) -> Path:
    path = temp_dir / "offers.json"
    path.write_text(
        json.dumps(
            {
                "offers": [
                    {
                        "title": "Arsenal to win & Liverpool to draw",
                        "betTypeId": "FOOTBALL_MULTI_AND",
                        "boostedOdds": "8/1",
                        "book": "williamhill",
                    },
                    {
                        "title": "Arsenal to win & Saka anytime scorer",
                        "betTypeId": "FOOTBALL_MULTI_AND",
                        "boostedOdds": "10/1",
                    },
                    {
                        "title": "Arsenal & Liverpool Both To Win",
                        "betTypeId": "ALL_TO_WIN",
                        "boostedOdds": "7/4",
                    },
                ]
            }
        )
    )
    return path


@pytest.fixture
def exchange(fake_client, make_market, make_book, kickoff, alias_index, monkeypatch):
    """Route the resolve command to the in-memory exchange."""
    arsenal = fake_client.add_market(make_market("Arsenal", "Chelsea", kickoff(24)))
    liverpool = fake_client.add_market(make_market("Liverpool", "Everton", kickoff(30)))
    fake_client.add_book(make_book(arsenal, {"Arsenal": (1.8, 100.0, 1.84, 60.0)}))
    fake_client.add_book(
        make_book(liverpool, {"Liverpool": (1.5, 500.0, 1.52, 300.0), "The Draw": (3.5, 50.0, 3.6, 40.0)})
    )

    async def run_batch(config, offers, skip_log):
        engine = OfferEngine(fake_client, alias_index, config, skip_log=skip_log)
        return await engine.resolve_batch(offers)

    monkeypatch.setattr(cli_module, "run_batch", run_batch)
    return fake_client


class TestReadOffers:
    """Test reading classified offers."""

    def test_wrapped_and_bare_lists(self, temp_dir: Path, offers_path: Path):
        """Test both input shapes are accepted."""
        wrapped = read_offers(offers_path)
        bare_path = temp_dir / "bare.json"
        bare_path.write_text(json.dumps([{"title": "Arsenal to win", "betTypeId": "FOOTBALL_TEAM_WIN"}]))

        assert [o.title for o in wrapped][0] == "Arsenal to win & Liverpool to draw"
        assert wrapped[0].bookmaker == "williamhill"
        assert read_offers(bare_path)[0].bet_type_id == "FOOTBALL_TEAM_WIN"


class TestResolveCommand:
    """Test the resolve command."""

    def test_missing_config(self, temp_dir: Path, offers_path: Path, capsys):
        """Test a missing config file exits with an error."""
        code = run_resolve(str(temp_dir / "missing.yaml"), str(offers_path), None, False)

        assert code == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_informational_run(self, runner, exchange, dev_config_path, offers_path, temp_dir):
        """Test every priced offer is written when filters are not enforced."""
        out_path = temp_dir / "out" / "priced.json"

        result = runner.invoke(
            cli,
            ["resolve", "-c", str(dev_config_path), "--in", str(offers_path), "--out", str(out_path)],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(out_path.read_text())
        assert [o["title"] for o in payload["offers"]] == [
            "Arsenal to win & Liverpool to draw",
            "Arsenal & Liverpool Both To Win",
        ]
        summary = payload["summary"]
        assert summary["offers"] == 3
        assert summary["decomposed"] == 2
        assert summary["priced"] == 2
        assert summary["publishable"] == 1
        assert summary["written"] == 2
        assert summary["skips"] == {"UNSUPPORTED_PROP": 1}
        assert "Arsenal to win & Liverpool to draw | fair=6.46" in result.stdout

    def test_enforced_run(self, runner, exchange, dev_config_path, offers_path, temp_dir):
        """Test enforcement drops and logs offers failing the filters."""
        out_path = temp_dir / "priced.json"

        result = runner.invoke(
            cli,
            [
                "resolve",
                "-c",
                str(dev_config_path),
                "--in",
                str(offers_path),
                "--out",
                str(out_path),
                "--enforce",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(out_path.read_text())
        assert [o["title"] for o in payload["offers"]] == ["Arsenal to win & Liverpool to draw"]
        assert payload["summary"]["skips"] == {"UNSUPPORTED_PROP": 1, "BELOW_THRESHOLD": 1}

        skip_log_path = Path(payload["summary"]["skip_log"])
        stages = [json.loads(line)["stage"] for line in skip_log_path.read_text().splitlines()]
        assert sorted(stages) == ["decompose", "filter"]


class TestAliasesLint:
    """Test the aliases-lint command."""

    def test_bundled_aliases_pass(self, runner):
        """Test the shipped alias files lint clean."""
        result = runner.invoke(cli, ["aliases-lint"])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip().endswith("OK")

    def test_orphan_fails(self, runner, temp_dir: Path):
        """Test an overlay naming an unknown id fails the lint."""
        aliases_dir = temp_dir / "aliases"
        (aliases_dir / "bookmakers").mkdir(parents=True)
        (aliases_dir / "master.yaml").write_text(
            yaml.dump([{"id": "arsenal", "name": "Arsenal"}, {"id": "chelsea", "name": "Chelsea"}])
        )
        (aliases_dir / "bookmakers" / "testbook.yaml").write_text(
            yaml.dump({"The Gunners": "arsenal", "Wolves": "wolves"})
        )
        config_path = temp_dir / "lint.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "aliases": {
                        "master_path": str(aliases_dir / "master.yaml"),
                        "overlay_dir": str(aliases_dir / "bookmakers"),
                    }
                }
            )
        )

        result = runner.invoke(cli, ["aliases-lint", "-c", str(config_path)])

        assert result.exit_code == LINT_FAILED_EXIT_CODE
        assert "ORPHAN overlay:testbook: 'Wolves' -> wolves" in result.stdout
        assert "FAILED" in result.stdout

    def test_json_report(self, runner):
        """Test the JSON report shape."""
        result = runner.invoke(cli, ["aliases-lint", "--json", "--bookmaker", "williamhill"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["entries"] > 0
        assert report["conflicts"] == []
        assert report["orphans"] == []
