import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from tokenvest.cli.main import cli

ALLOCATION = Path(__file__).resolve().parents[2] / "config" / "pstake_allocation.yaml"
LISTING = 1644246000
MINTER = "0x" + "ee" * 20
ONE_TOKEN = 10**18


def _invoke(*args):
    runner = CliRunner()
    return runner.invoke(cli, ["--log-level", "WARNING", *args])


def test_deploy_json_mints_every_bucket():
    result = _invoke("deploy", str(ALLOCATION), "--minter", MINTER, "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["minter"] == MINTER
    assert payload["total_supply"] == 500_000_000 * ONE_TOKEN
    assert len(payload["vestings"]) == 9
    for row in payload["vestings"]:
        assert row["balance"] == row["total"]
    assert {row["bucket"] for row in payload["vestings"]} >= {"airdrop", "team", "treasury"}


def test_deploy_table_output():
    result = _invoke("deploy", str(ALLOCATION), "--minter", MINTER)

    assert result.exit_code == 0, result.output
    assert "PSTAKE genesis" in result.output
    assert "airdrop" in result.output


def test_deploy_requires_minter():
    result = _invoke("deploy", str(ALLOCATION))

    assert result.exit_code == 2
    assert "--minter is required" in result.output


def test_deploy_uses_minter_from_file(tmp_path):
    data = yaml.safe_load(ALLOCATION.read_text(encoding="utf-8"))
    data["minter"] = MINTER
    path = tmp_path / "allocation.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")

    result = _invoke("deploy", str(path), "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["minter"] == MINTER


def test_deploy_rejects_duplicate_beneficiaries(tmp_path):
    data = yaml.safe_load(ALLOCATION.read_text(encoding="utf-8"))
    data["buckets"].append(dict(data["buckets"][0], name="airdrop_again"))
    path = tmp_path / "allocation.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")

    result = _invoke("deploy", str(path), "--minter", MINTER)

    assert result.exit_code == 1
    assert "duplicate beneficiary" in result.output


def test_timeline_json():
    month = 30 * 24 * 60 * 60
    result = _invoke(
        "timeline", str(ALLOCATION),
        "--at", str(LISTING + month), "--at", str(LISTING - 1), "--json",
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["airdrop"][str(LISTING - 1)] == 0
    assert payload["airdrop"][str(LISTING + month)] == 10_000_000 * ONE_TOKEN
    assert payload["team"][str(LISTING + month)] == 0
    assert payload["alpha_launchpad"][str(LISTING + month)] == 10_000_000 * ONE_TOKEN


def test_timeline_defaults_to_listing():
    result = _invoke("timeline", str(ALLOCATION), "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert list(payload["airdrop"]) == [str(LISTING)]
    assert payload["airdrop"][str(LISTING)] == 5_000_000 * ONE_TOKEN


def test_timeline_rejects_malformed_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("listing_timestamp: 1\nbuckets: []\n", encoding="utf-8")

    result = _invoke("timeline", str(path))

    assert result.exit_code == 1
    assert "no buckets" in result.output


def test_timeline_rejects_non_numeric_decimals(tmp_path):
    path = tmp_path / "decimals.yaml"
    path.write_text(
        yaml.safe_dump({
            "listing_timestamp": LISTING,
            "decimals": "abc",
            "buckets": [{"beneficiary": MINTER, "cliff_amount": 1}],
        }),
        encoding="utf-8",
    )

    result = _invoke("timeline", str(path))

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "malformed allocation" in result.output


def test_timeline_rejects_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("listing_timestamp: 1\nbuckets: [\n", encoding="utf-8")

    result = _invoke("timeline", str(path))

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid allocation file" in result.output


def test_deploy_rejects_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("buckets: [\n", encoding="utf-8")

    result = _invoke("deploy", str(path), "--minter", MINTER)

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_network_profile():
    result = _invoke("network", "goerli")

    assert result.exit_code == 0, result.output
    assert "goerli" in result.output
    assert "4000000" in result.output


def test_unknown_network():
    result = _invoke("network", "rinkeby")

    assert result.exit_code == 1
    assert "Unknown network" in result.output
