"""Inspect what the Crowd federation provider exposes for users and groups.

This module serves as a CLI wrapper around crowd_federation.core; every
command performs live, read-only Crowd calls.
"""
from __future__ import annotations
import argparse
import getpass
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crowd_federation.config import load_settings
from crowd_federation.core.errors import ConfigurationError, DirectoryAccessError
from crowd_federation.core.provider_factory import CrowdStorageProviderFactory


def format_group(node, indent: int = 0) -> list[str]:
    """Render a group with its ancestor chain and its subtree."""
    ancestors = []
    parent = node.parent
    while parent is not None:
        ancestors.append(parent.name)
        parent = parent.parent
    suffix = f"  (under {' > '.join(ancestors)})" if ancestors and indent == 0 else ""
    lines = [f"{'  ' * indent}- {node.name}{suffix}"]
    for child in sorted(node.children, key=lambda c: c.name):
        lines.extend(format_group(child, indent + 1))
    return lines


def format_user(user) -> list[str]:
    lines = [
        f"{user.username}  id={user.id}",
        f"  email: {user.email or ''}",
        f"  name:  {user.first_name or ''} {user.last_name or ''}".rstrip(),
        f"  display name: {user.display_name or ''}",
    ]
    groups = sorted(user.get_groups(), key=lambda g: g.name)
    if groups:
        lines.append("  groups:")
        for group in groups:
            lines.extend(f"  {line}" for line in format_group(group))
    else:
        lines.append("  groups: (none)")
    return lines


def _parse_params(pairs: list[str], parser: argparse.ArgumentParser) -> dict[str, str]:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            parser.error(f"Invalid --param '{pair}' (expected key=value)")
        params[key] = value
    return params


def main() -> None:
    """Command-line entry point."""
    log_level = os.environ.get("CROWD_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Crowd federation probe")
    parser.add_argument("--url", default=settings.url)
    parser.add_argument("--app-name", default=settings.application_name)
    parser.add_argument("--app-password", default=settings.application_password)
    parser.add_argument("--provider-id", default=settings.provider_id)
    parser.add_argument("--log-level", default=log_level)

    sub = parser.add_subparsers(dest="cmd")

    su = sub.add_parser("user")
    su.add_argument("--username", required=True)

    si = sub.add_parser("user-id")
    si.add_argument("--id", required=True)

    se = sub.add_parser("email")
    se.add_argument("--email", required=True)

    ss = sub.add_parser("search")
    ss.add_argument("--text", help="Free-text search over names, email and username")
    ss.add_argument("--param", action="append", default=[], help="key=value (repeatable)")
    ss.add_argument("--first", type=int, default=0)
    ss.add_argument("--max", type=int, default=25)

    sub.add_parser("count")

    sm = sub.add_parser("members")
    sm.add_argument("--username", required=True, help="Member whose groups are listed")
    sm.add_argument("--group", required=True)

    sp = sub.add_parser("check-password")
    sp.add_argument("--username", required=True)

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    logging.getLogger().setLevel(args.log_level.upper())

    factory = CrowdStorageProviderFactory(timeout=settings.request_timeout)
    try:
        provider = factory.create(
            {"url": args.url, "applicationName": args.app_name, "applicationPassword": args.app_password},
            args.provider_id,
        )
    except ConfigurationError as e:
        parser.error(str(e))

    try:
        if args.cmd == "user":
            user = provider.get_user_by_username(args.username)
            _print_user_or_missing(user, args.username)
        elif args.cmd == "user-id":
            user = provider.get_user_by_id(args.id)
            _print_user_or_missing(user, args.id)
        elif args.cmd == "email":
            user = provider.get_user_by_email(args.email)
            _print_user_or_missing(user, args.email)
        elif args.cmd == "search":
            if args.text is not None:
                users = provider.search_for_user_text(args.text, args.first, args.max)
            else:
                users = provider.search_for_user(_parse_params(args.param, parser), args.first, args.max)
            for user in users:
                print("\n".join(format_user(user)))
            print(f"[search] {len(users)} user(s)")
        elif args.cmd == "count":
            print(provider.get_users_count())
        elif args.cmd == "members":
            user = provider.get_user_by_username(args.username)
            if user is None:
                print(f"[members] User '{args.username}' not found", file=sys.stderr)
                sys.exit(1)
            group = next((g for g in user.get_groups() if g.name == args.group), None)
            if group is None:
                print(f"[members] '{args.username}' is not a direct member of '{args.group}'", file=sys.stderr)
                sys.exit(1)
            for member in provider.get_group_members(group):
                print(member.username)
        elif args.cmd == "check-password":
            user = provider.get_user_by_username(args.username)
            if user is None:
                print(f"[check-password] User '{args.username}' not found", file=sys.stderr)
                sys.exit(1)
            password = os.environ.get("CROWD_PROBE_PASSWORD") or getpass.getpass(f"Password for {args.username}: ")
            valid = provider.is_valid(user, "password", password)
            print("valid" if valid else "rejected")
            if not valid:
                sys.exit(2)
    except DirectoryAccessError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        provider.close()


def _print_user_or_missing(user, key: str) -> None:
    if user is None:
        print(f"No user found for '{key}'", file=sys.stderr)
        sys.exit(1)
    print("\n".join(format_user(user)))


if __name__ == "__main__":
    main()
