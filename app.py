from __future__ import annotations

import argparse
import getpass
import json
import sys
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, List, Optional

from bridge.core.config import ConfigManager
from bridge.core.config.paths import ConfigFsPaths
from bridge.core.cookies import JsonFileCookieStore
from bridge.core.errors import BridgeError, ValidationError
from bridge.core.events import EventLogger
from bridge.core.identity import AuthClient
from bridge.core.logger import setup_logging
from bridge.core.transport import HttpTransport
from bridge.core.url import QueryStringReader


def _parse_properties(pairs: List[str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValidationError(f"Expected KEY=VALUE, got {pair!r}.")
        k, v = pair.split("=", 1)
        try:
            out[k] = json.loads(v)
        except json.JSONDecodeError:
            out[k] = v
    return out


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Bridge identity client")
    ap.add_argument("--root", default=".", help="Directory holding config/, logs/ and runtime/.")
    ap.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for a result.")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Login with username and password.")
    p.add_argument("role")
    p.add_argument("username")
    p.add_argument("--password", default=None, help="Prompted when omitted.")

    p = sub.add_parser("login-by-hash", help="Login with email and hash.")
    p.add_argument("role")
    p.add_argument("email")
    p.add_argument("hash")
    p.add_argument("--username", default=None)

    sub.add_parser("logout", help="Destroy the remote session.")

    p = sub.add_parser("identity", help="Show the current identity.")
    p.add_argument("--role", default=None)
    p.add_argument("--force", action="store_true", help="Bypass the cached identity.")

    p = sub.add_parser("has-identity", help="Check whether the identity holds a role.")
    p.add_argument("role")

    sub.add_parser("user-id", help="Show the current user id.")

    p = sub.add_parser("username", help="Look up a username by user id.")
    p.add_argument("user_id")

    p = sub.add_parser("username-available", help="Check whether a username is free.")
    p.add_argument("username")

    p = sub.add_parser("update", help="Update properties of the current user.")
    p.add_argument("properties", nargs="+", metavar="KEY=VALUE")

    for name in ("verify-email", "verify-notification-email"):
        p = sub.add_parser(name, help="Verify an email address by hash.")
        p.add_argument("hash")
        p.add_argument("--user", default=None, help="User id (defaults to the current identity).")

    p = sub.add_parser("partner", help="Resolve partner attribution.")
    p.add_argument("--url", default="", help="Page URL to read p/pi query parameters from.")
    p.add_argument("--offline", action="store_true", help="Never fetch the identity.")
    p.add_argument("--code", default=None, help="Override partner code.")
    p.add_argument("--info", default=None, help="Override partner info.")

    sub.add_parser("print-config", help="Print the effective configuration.")
    return ap


def _dispatch(client: AuthClient, args: argparse.Namespace):  # noqa: ANN201
    cmd = args.command
    if cmd == "login":
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        return client.login(args.role, args.username, password)
    if cmd == "login-by-hash":
        return client.login_by_hash(args.role, args.email, args.hash, args.username)
    if cmd == "logout":
        return client.logout()
    if cmd == "identity":
        return client.get_identity(args.role, force=args.force)
    if cmd == "has-identity":
        return client.has_identity(args.role)
    if cmd == "user-id":
        return client.get_user_id()
    if cmd == "username":
        return client.get_username(args.user_id)
    if cmd == "username-available":
        return client.username_available(args.username)
    if cmd == "update":
        return client.update(_parse_properties(args.properties))
    if cmd == "verify-email":
        return client.verify_email(args.hash, args.user)
    if cmd == "verify-notification-email":
        return client.verify_notification_email(args.hash, args.user)
    if cmd == "partner":
        if args.code is not None or args.info is not None:
            client.set_partner_info(args.code, args.info)
        return client.get_partner_info(offline=args.offline)
    raise ValidationError(f"Unknown command {cmd!r}.")


def _emit(result: Any) -> None:
    if hasattr(result, "to_cookie"):
        result = result.to_cookie()
    print(json.dumps(result, indent=2, sort_keys=True, ensure_ascii=False, default=str))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    fs = ConfigFsPaths(args.root)

    try:
        cm = ConfigManager(fs=fs, logger=None)
        cfg = cm.load_all()
    except BridgeError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1

    if args.command == "print-config":
        _emit(cfg.model_dump())
        return 0

    logger = setup_logging(
        fs.resolve(cfg.logging.log_dir),
        level=cfg.logging.level,
        max_bytes=cfg.logging.max_bytes,
        backup_count=cfg.logging.backup_count,
    )
    cookies = JsonFileCookieStore(fs.resolve(cfg.cookies.path), logger=logger)
    transport = HttpTransport.from_config(cfg.transport, logger=logger)
    # the remote session lives in its cookies; carry them between runs
    transport.import_cookies(cookies.read(cfg.cookies.session_key))
    client = AuthClient.from_config(
        cfg,
        transport=transport,
        cookies=cookies,
        url=QueryStringReader(getattr(args, "url", "") or ""),
        event_logger=EventLogger(fs.resolve(cfg.logging.events_path)),
        logger=logger,
    )
    try:
        result = _dispatch(client, args).result(timeout=args.timeout)
    except BridgeError as e:
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return 1
    except FutureTimeout:
        print(json.dumps({"code": "timeout", "user_message": f"No result within {args.timeout}s."}), file=sys.stderr)
        return 1
    finally:
        transport.close()
        cookies.write(cfg.cookies.session_key, transport.export_cookies())
    _emit(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
