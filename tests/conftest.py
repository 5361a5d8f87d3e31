"""Shared pytest fixtures for WireGuard wrapper tests."""

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from wg_wrapper.settings import ManagerSettings

SAMPLE_CONFIG = (
    "[Interface]\n"
    "PrivateKey = K\n"
    "Address = 10.0.0.2/32\n"
    "DNS = 1.1.1.1\n"
    "\n"
    "[Peer]\n"
    "PublicKey = P\n"
    "AllowedIPs = 0.0.0.0/0\n"
    "Endpoint = vpn.test.com:51820\n"
)

WG_SHOW_OUTPUT = """interface: home
  public key: SERVERPUBKEYSERVERPUBKEYSERVERPUBKEY1234=
  private key: (hidden)
  listening port: 51820

peer: PEERPUBKEYPEERPUBKEYPEERPUBKEYPEERPUB12=
  preshared key: (hidden)
  endpoint: 203.0.113.5:51820
  allowed ips: 0.0.0.0/0, ::/0
  latest handshake: 1 minute, 5 seconds ago
  transfer: 1.50 MiB received, 200.00 KiB sent
  persistent keepalive: every 25 seconds
"""

IP_ADDR_OUTPUT = (
    "7: home    inet 10.0.0.2/32 scope global home\\"
    "       valid_lft forever preferred_lft forever\n"
)


class FakeWireGuardTools:
    """Stand-in for ``ip``, ``wg`` and ``wg-quick`` behind ``subprocess.run``.

    Interfaces listed in ``active`` are up. ``failures`` maps
    ``(tool, action)`` to the stderr the tool should fail with.
    Tools named in ``missing`` fail to start, like an absent binary.
    ``on_down`` hooks run when an interface is stopped, to mimic tools that
    write running state back to the config file.
    ``synced`` records the text each ``wg syncconf`` call received.
    """

    def __init__(self) -> None:
        self.active: set[str] = set()
        self.failures: dict[tuple[str, str], str] = {}
        self.missing: set[str] = set()
        self.calls: list[list[str]] = []
        self.on_down: list[Callable[[str], None]] = []
        self.on_up: list[Callable[[str], None]] = []
        self.synced: dict[str, str] = {}
        self.default_route = "default via 192.168.1.1 dev eth0 proto dhcp metric 100\n"

    def __call__(self, args, input=None, capture_output=False, text=False, check=False):
        args = list(args)
        self.calls.append(args)
        tool, action = args[0], args[1]

        if tool in self.missing:
            raise FileNotFoundError(f"No such file or directory: '{tool}'")

        failure = self.failures.get((tool, action))
        if failure is not None:
            return self._result(args, 1, stderr=failure)

        if tool == "ip" and action == "link":
            name = args[3]
            if name in self.active:
                return self._result(args, 0, stdout=f"7: {name}: <POINTOPOINT,UP>\n")
            return self._result(args, 1, stderr=f'Device "{name}" does not exist.\n')
        if tool == "ip" and action == "-o":
            return self._result(args, 0, stdout=IP_ADDR_OUTPUT)
        if tool == "ip" and "route" in args:
            return self._result(args, 0, stdout=self.default_route)
        if tool == "wg" and action == "show":
            if args[2] in self.active:
                return self._result(args, 0, stdout=WG_SHOW_OUTPUT)
            return self._result(args, 1, stderr="Unable to access interface\n")
        if tool == "wg" and action == "syncconf":
            self.synced[args[2]] = input
            return self._result(args, 0)
        if tool == "wg" and action == "genkey":
            return self._result(args, 0, stdout="PRIVATEKEYPRIVATEKEYPRIVATEKEYPRIVATE12=\n")
        if tool == "wg" and action == "pubkey":
            return self._result(args, 0, stdout="PUBLICKEYPUBLICKEYPUBLICKEYPUBLICKEY123=\n")
        if tool == "wg-quick" and action == "up":
            name = Path(args[2]).stem
            for hook in self.on_up:
                hook(args[2])
            self.active.add(name)
            return self._result(args, 0)
        if tool == "wg-quick" and action == "down":
            name = args[2]
            for hook in self.on_down:
                hook(name)
            self.active.discard(name)
            return self._result(args, 0)
        return self._result(args, 127, stderr=f"unexpected command {args}\n")

    def commands(self, tool: str) -> list[list[str]]:
        return [call for call in self.calls if call[0] == tool]

    @staticmethod
    def _result(args, returncode, stdout="", stderr=""):
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)


@pytest.fixture
def fake_tools(monkeypatch):
    """Replace subprocess.run with scripted WireGuard tools.

    Returns:
        FakeWireGuardTools: The fake, for configuring state and inspecting calls
    """
    tools = FakeWireGuardTools()
    monkeypatch.setattr("subprocess.run", tools)
    return tools


@pytest.fixture
def config_dir(tmp_path):
    """Configuration directory holding a single ``home`` tunnel.

    Args:
        tmp_path: pytest's tmp_path fixture

    Returns:
        Path: Directory containing home.conf
    """
    directory = tmp_path / "wireguard"
    directory.mkdir()
    (directory / "home.conf").write_text(SAMPLE_CONFIG)
    return directory


@pytest.fixture
def settings(config_dir):
    """Settings pointed at the temporary configuration directory."""
    return ManagerSettings(config_dir=config_dir)
