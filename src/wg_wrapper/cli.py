"""Command-line front end for the tunnel session."""

import argparse
import sys
from pathlib import Path

from .api import StatusMessage, TunnelSession
from .common.exceptions import WGWrapperError
from .common.logging import setup_logging
from .common.process import check_dependencies
from .common.utils import format_bytes, truncate_key, write_atomic
from .settings import ManagerSettings
from .tunnels import NewServerDraft, NewTunnelDraft, TunnelRecord, detect_public_ip
from .tunnels.server import DEFAULT_LISTEN_PORT

# Draft field -> command-line option
EDIT_OPTIONS = {
    "address": "--address",
    "dns": "--dns",
    "listen_port": "--listen-port",
    "mtu": "--mtu",
    "peer_endpoint": "--endpoint",
    "peer_allowed_ips": "--allowed-ips",
    "peer_keepalive": "--keepalive",
}


def _report(message: StatusMessage | None) -> int:
    if message is None:
        return 0
    stream = sys.stderr if message.is_error else sys.stdout
    print(message.text, file=stream)
    return 1 if message.is_error else 0


def _print_details(record: TunnelRecord) -> None:
    print(f"Tunnel    : {record.name}")
    print(f"Config    : {record.config_path}")
    print(f"Status    : {'active' if record.active else 'inactive'}")
    snapshot = record.snapshot
    if snapshot is None or snapshot.is_empty:
        return
    print(f"Public key: {truncate_key(snapshot.public_key)}")
    if snapshot.listen_port:
        print(f"Port      : {snapshot.listen_port}")
    if snapshot.addresses:
        print(f"Addresses : {', '.join(snapshot.addresses)}")
    if snapshot.dns:
        print(f"DNS       : {', '.join(snapshot.dns)}")
    for peer in snapshot.peers:
        print(f"\nPeer {truncate_key(peer.public_key)}")
        print(f"  Endpoint   : {peer.endpoint or '-'}")
        print(f"  Allowed IPs: {', '.join(peer.allowed_ips) or '-'}")
        print(f"  Handshake  : {peer.latest_handshake or 'never'}")
        print(
            f"  Transfer   : {format_bytes(peer.transfer_rx)} received, "
            f"{format_bytes(peer.transfer_tx)} sent"
        )


# ---------------------------------------------------
# Commands
# ---------------------------------------------------


def cmd_list(session: TunnelSession, args: argparse.Namespace) -> int:
    if session.message is not None and session.message.is_error:
        return _report(session.message)
    if not session.tunnels:
        print("No tunnels.")
        return 0
    for record in session.tunnels:
        state = "up" if record.active else "down"
        marker = " (full tunnel)" if session.registry.is_full_tunnel(record) else ""
        print(f"{record.name:<20} {state}{marker}")
    return 0


def cmd_show(session: TunnelSession, args: argparse.Namespace) -> int:
    record = session.details(args.name)
    if record is None:
        return _report(session.message)
    _print_details(record)
    return 0


def cmd_toggle(session: TunnelSession, args: argparse.Namespace) -> int:
    return _report(session.toggle(args.name))


def cmd_edit(session: TunnelSession, args: argparse.Namespace) -> int:
    draft = session.begin_edit(args.name)
    if draft is None:
        return _report(session.message)
    for field in EDIT_OPTIONS:
        value = getattr(args, field)
        if value is not None:
            setattr(draft, field, value)
    return _report(session.save_edit(args.name, draft))


def cmd_create(session: TunnelSession, args: argparse.Namespace) -> int:
    private_key = args.private_key
    if not private_key:
        try:
            private_key, public_key = session.builder.generate_keypair()
        except WGWrapperError as e:
            return _report(StatusMessage.error(str(e)))
        print(f"Generated key pair, public key: {public_key}")
    draft = NewTunnelDraft(
        name=args.name,
        private_key=private_key,
        address=args.address,
        dns=args.dns or "",
        peer_public_key=args.peer_public_key,
        allowed_ips=args.allowed_ips,
        endpoint=args.endpoint,
    )
    return _report(session.create(draft))


def cmd_create_server(session: TunnelSession, args: argparse.Namespace) -> int:
    try:
        private_key = args.private_key
        if not private_key:
            private_key, public_key = session.builder.generate_keypair()
            print(f"Generated key pair, public key: {public_key}")
        address = args.address or session.builder.suggest_server_address()
        egress = args.egress_interface
        if not egress:
            egress = session.registry.probe.default_egress_interface()
    except WGWrapperError as e:
        return _report(StatusMessage.error(str(e)))
    if not egress:
        return _report(
            StatusMessage.error(
                "Could not detect the default route interface; pass --egress-interface"
            )
        )
    draft = NewServerDraft(
        name=args.name,
        private_key=private_key,
        address=address,
        listen_port=args.listen_port,
        egress_interface=egress,
    )
    return _report(session.create_server(draft))


def cmd_add_peer(session: TunnelSession, args: argparse.Namespace) -> int:
    endpoint = args.endpoint or detect_public_ip()
    if not endpoint:
        return _report(
            StatusMessage.error("Could not detect a public IP; pass --endpoint")
        )
    peer = session.add_server_peer(args.name)
    if peer is None:
        return _report(session.message)

    client_config = peer.render_client_config(endpoint, args.dns or "")
    if args.output is None:
        sys.stdout.write(client_config)
        print(session.message.text, file=sys.stderr)
        return 0
    try:
        write_atomic(args.output.expanduser(), client_config)
    except WGWrapperError as e:
        return _report(StatusMessage.error(str(e)))
    print(f"Client config written to {args.output}")
    return _report(session.message)


def cmd_import(session: TunnelSession, args: argparse.Namespace) -> int:
    return _report(session.import_config(args.path))


def cmd_export(session: TunnelSession, args: argparse.Namespace) -> int:
    return _report(session.export(args.dest))


def cmd_delete(session: TunnelSession, args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input(f"Delete tunnel '{args.name}'? [y/N] ")
        if answer.strip().lower() != "y":
            return _report(StatusMessage.info("Delete cancelled"))
    return _report(session.delete(args.name))


# ---------------------------------------------------
# Parser
# ---------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wg-wrapper", description="Manage WireGuard tunnel configurations"
    )
    parser.add_argument("--config-dir", type=Path, help="Tunnel config directory")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--json-logs", action="store_true")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("check", help="Check that WireGuard tools are installed")

    p_list = sub.add_parser("list", help="List tunnels")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show live tunnel details")
    p_show.add_argument("name")
    p_show.set_defaults(func=cmd_show)

    p_toggle = sub.add_parser("toggle", help="Start or stop a tunnel")
    p_toggle.add_argument("name")
    p_toggle.set_defaults(func=cmd_toggle)

    p_edit = sub.add_parser("edit", help="Edit tunnel fields in place")
    p_edit.add_argument("name")
    for field, option in EDIT_OPTIONS.items():
        p_edit.add_argument(option, dest=field)
    p_edit.set_defaults(func=cmd_edit)

    p_create = sub.add_parser("create", help="Create a client tunnel")
    p_create.add_argument("name")
    p_create.add_argument("--private-key", help="Generated with wg if omitted")
    p_create.add_argument("--address", required=True)
    p_create.add_argument("--dns")
    p_create.add_argument("--peer-public-key", required=True)
    p_create.add_argument("--allowed-ips", required=True)
    p_create.add_argument("--endpoint", required=True)
    p_create.set_defaults(func=cmd_create)

    p_server = sub.add_parser("create-server", help="Create a NAT server tunnel")
    p_server.add_argument("name")
    p_server.add_argument("--private-key", help="Generated with wg if omitted")
    p_server.add_argument("--address", help="Defaults to a free 10.0.N.1/32")
    p_server.add_argument("--listen-port", default=str(DEFAULT_LISTEN_PORT))
    p_server.add_argument(
        "--egress-interface", help="Defaults to the default route device"
    )
    p_server.set_defaults(func=cmd_create_server)

    p_peer = sub.add_parser("add-peer", help="Add a peer to a server tunnel")
    p_peer.add_argument("name")
    p_peer.add_argument("--endpoint", help="Server host; detected if omitted")
    p_peer.add_argument("--dns", help="DNS servers for the client config")
    p_peer.add_argument(
        "--output", type=Path, help="Write the client config here instead of stdout"
    )
    p_peer.set_defaults(func=cmd_add_peer)

    p_import = sub.add_parser("import", help="Import a tunnel config file")
    p_import.add_argument("path")
    p_import.set_defaults(func=cmd_import)

    p_export = sub.add_parser("export", help="Export all tunnels to a zip file")
    p_export.add_argument("dest")
    p_export.set_defaults(func=cmd_export)

    p_delete = sub.add_parser("delete", help="Delete a tunnel")
    p_delete.add_argument("name")
    p_delete.add_argument("-y", "--yes", action="store_true")
    p_delete.set_defaults(func=cmd_delete)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd is None:
        parser.print_help()
        return 0

    try:
        setup_logging(level=args.log_level, json_format=args.json_logs)
    except WGWrapperError as e:
        return _report(StatusMessage.error(str(e)))
    settings = ManagerSettings.from_env()
    if args.config_dir is not None:
        settings.config_dir = args.config_dir

    if args.cmd == "check":
        missing = check_dependencies(settings.required_binaries)
        if missing:
            return _report(StatusMessage.error(f"Missing tools: {', '.join(missing)}"))
        return _report(StatusMessage.success("All WireGuard tools found"))

    session = TunnelSession(settings)
    return args.func(session, args)


if __name__ == "__main__":
    sys.exit(main())
