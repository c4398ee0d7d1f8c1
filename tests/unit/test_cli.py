"""Tests for the eureka-sdk command line."""

from __future__ import annotations

from io import StringIO

import pytest
from rich.console import Console

from eureka_sdk import cli
from eureka_sdk.application.client import EurekaClient
from eureka_sdk.domain.enums import InstanceStatus, TransportErrorKind
from eureka_sdk.domain.exceptions import TransportError
from tests.builders import a_snapshot, an_instance


@pytest.fixture
def console():
    return Console(file=StringIO(), width=200, color_system=None)


@pytest.fixture
def patched_client(monkeypatch, fake_registry, mock_logger):
    monkeypatch.delenv("EUREKA_ENV", raising=False)

    def factory(config, logger):
        return EurekaClient(config, logger=mock_logger, registry=fake_registry)

    monkeypatch.setattr(cli, "EurekaClient", factory)
    return fake_registry


def run_cli(argv: list[str], tmp_path) -> cli.argparse.Namespace:
    return cli.build_parser().parse_args(["--config-dir", str(tmp_path), *argv])


class TestCli:
    """Test cases for the CLI commands."""

    @pytest.mark.asyncio
    async def test_apps_lists_up_instances(self, patched_client, console, tmp_path):
        patched_client.snapshots.append(
            (
                a_snapshot(
                    an_instance("orders-1"),
                    an_instance("orders-2", status=InstanceStatus.DOWN),
                    an_instance("users-1", "users"),
                ),
                [],
            )
        )

        code = await cli.run(run_cli(["apps"], tmp_path), console)

        output = console.file.getvalue()
        assert code == 0
        assert "orders-1" in output
        assert "users-1" in output
        assert "orders-2" not in output

    @pytest.mark.asyncio
    async def test_apps_all_includes_down_instances(self, patched_client, console, tmp_path):
        patched_client.snapshots.append(
            (a_snapshot(an_instance("orders-2", status=InstanceStatus.DOWN)), [])
        )

        code = await cli.run(run_cli(["apps", "--all"], tmp_path), console)

        assert code == 0
        assert "orders-2" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_resolve_prints_url(self, patched_client, console, tmp_path):
        patched_client.snapshots.append((a_snapshot(an_instance("orders-1", ip="10.0.0.4")), []))

        code = await cli.run(run_cli(["resolve", "orders"], tmp_path), console)

        assert code == 0
        assert "http://10.0.0.4:8080" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_resolve_unknown_service_exits_1(self, patched_client, console, tmp_path):
        patched_client.snapshots.append((a_snapshot(an_instance("orders-1")), []))

        code = await cli.run(run_cli(["resolve", "billing"], tmp_path), console)

        assert code == 1
        assert "No healthy instance" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_unreachable_registry_exits_1(self, patched_client, console, tmp_path):
        patched_client.snapshots.append(TransportError(TransportErrorKind.CONNECTION_REFUSED))

        code = await cli.run(run_cli(["apps"], tmp_path), console)

        assert code == 1
        assert "Could not fetch the registry" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_invalid_config_exits_2(self, patched_client, console, tmp_path):
        (tmp_path / "eureka-client.yml").write_text("eureka: [broken\n")

        code = await cli.run(run_cli(["apps"], tmp_path), console)

        assert code == 2


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
