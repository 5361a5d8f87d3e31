"""Tests for tunnel discovery and status refresh."""

import os

import pytest

from tests.conftest import SAMPLE_CONFIG
from wg_wrapper.common.exceptions import DiscoveryError, TunnelNotFoundError
from wg_wrapper.settings import ManagerSettings
from wg_wrapper.tunnels import TunnelRecord, TunnelRegistry


class TestDiscovery:
    """Test scanning the configuration directory."""

    def test_discovers_matching_files_only(self, tmp_path):
        (tmp_path / "a.conf").write_text(SAMPLE_CONFIG)
        (tmp_path / "b.conf").write_text(SAMPLE_CONFIG)
        (tmp_path / "notes.txt").write_text("not a tunnel")

        registry = TunnelRegistry(ManagerSettings(config_dir=tmp_path))
        records = registry.discover()

        assert [record.name for record in records] == ["a", "b"]
        assert records[0].config_path == tmp_path / "a.conf"
        assert all(not record.active for record in records)

    def test_order_is_stable(self, tmp_path):
        for name in ["zeta", "alpha", "mid"]:
            (tmp_path / f"{name}.conf").write_text("")

        registry = TunnelRegistry(ManagerSettings(config_dir=tmp_path))

        first = [record.name for record in registry.discover()]
        second = [record.name for record in registry.discover()]
        assert first == second == ["alpha", "mid", "zeta"]

    def test_directories_are_skipped(self, tmp_path):
        (tmp_path / "dir.conf").mkdir()
        registry = TunnelRegistry(ManagerSettings(config_dir=tmp_path))
        assert registry.discover() == []

    def test_discovery_does_not_modify_files(self, config_dir, settings):
        path = config_dir / "home.conf"
        before = path.stat().st_mtime_ns
        TunnelRegistry(settings).discover()
        assert path.stat().st_mtime_ns == before
        assert path.read_text() == SAMPLE_CONFIG

    def test_missing_directory_raises(self, tmp_path):
        registry = TunnelRegistry(ManagerSettings(config_dir=tmp_path / "missing"))
        with pytest.raises(DiscoveryError, match="Cannot read"):
            registry.discover()

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read any directory")
    def test_unreadable_directory_raises(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            registry = TunnelRegistry(ManagerSettings(config_dir=locked))
            with pytest.raises(DiscoveryError):
                registry.discover()
        finally:
            locked.chmod(0o700)

    def test_custom_extension(self, tmp_path):
        (tmp_path / "a.conf").write_text("")
        (tmp_path / "b.wg").write_text("")
        registry = TunnelRegistry(ManagerSettings(config_dir=tmp_path, extension=".wg"))
        assert [record.name for record in registry.discover()] == ["b"]


class TestStatus:
    """Test live status refresh."""

    def test_refresh_status_sets_active(self, fake_tools, settings):
        fake_tools.active.add("home")
        registry = TunnelRegistry(settings)
        record = registry.discover()[0]

        refreshed = registry.refresh_status(record)

        assert refreshed.active is True
        assert refreshed.snapshot is None
        assert record.active is False

    def test_refresh_status_with_snapshot(self, fake_tools, settings):
        fake_tools.active.add("home")
        registry = TunnelRegistry(settings)

        refreshed = registry.refresh_status(registry.discover()[0], with_snapshot=True)

        assert refreshed.snapshot is not None
        assert refreshed.snapshot.dns == ["1.1.1.1"]
        assert refreshed.snapshot.addresses == ["10.0.0.2/32"]

    def test_inactive_tunnel_has_no_snapshot(self, fake_tools, settings):
        registry = TunnelRegistry(settings)
        refreshed = registry.refresh_status(registry.discover()[0], with_snapshot=True)

        assert refreshed.active is False
        assert refreshed.snapshot is None
        assert fake_tools.commands("wg") == []

    def test_refresh_rebuilds_list(self, fake_tools, config_dir, settings):
        registry = TunnelRegistry(settings)
        assert [r.name for r in registry.refresh()] == ["home"]

        (config_dir / "home.conf").unlink()
        (config_dir / "work.conf").write_text(SAMPLE_CONFIG)
        assert [r.name for r in registry.refresh()] == ["work"]

    def test_get(self, fake_tools, settings):
        record = TunnelRegistry(settings).get("home")
        assert isinstance(record, TunnelRecord)
        assert record.name == "home"

    def test_get_missing(self, fake_tools, settings):
        with pytest.raises(TunnelNotFoundError):
            TunnelRegistry(settings).get("nope")


class TestFullTunnel:
    """Test default-route detection."""

    def test_default_route_is_full_tunnel(self, settings):
        registry = TunnelRegistry(settings)
        assert registry.is_full_tunnel(registry.discover()[0]) is True

    def test_split_tunnel(self, config_dir, settings):
        (config_dir / "home.conf").write_text(
            "[Peer]\nAllowedIPs = 10.0.0.0/8, 192.168.0.0/16\n# AllowedIPs = ::/0\n"
        )
        registry = TunnelRegistry(settings)
        assert registry.is_full_tunnel(registry.discover()[0]) is False

    def test_ipv6_default_route(self, config_dir, settings):
        (config_dir / "home.conf").write_text("[Peer]\nAllowedIPs = 10.0.0.0/8,::/0\n")
        registry = TunnelRegistry(settings)
        assert registry.is_full_tunnel(registry.discover()[0]) is True
