"""Command-line wrapper around jenkins_admin.core.admin_service.

Connection settings come from the environment (JENKINS_URL,
JENKINS_USERNAME, JENKINS_PASSWORD, ...), see jenkins_admin.config.
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jenkins_admin.config import load_settings
from jenkins_admin.core.admin_service import build_admin
from jenkins_admin.core.jenkins.exceptions import JenkinsError


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Jenkins local user and global matrix helper")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("ping", help="Check the connection and print the Jenkins version")
    sub.add_parser("list-permissions", help="Print the grantable permission names")

    gu = sub.add_parser("get-user")
    gu.add_argument("--username", required=True)

    for name in ("create-user", "update-user"):
        cu = sub.add_parser(name)
        cu.add_argument("--username", required=True)
        cu.add_argument("--password", default=os.environ.get("JENKINS_NEW_USER_PASSWORD"))
        cu.add_argument("--fullname", required=True)
        cu.add_argument("--email", required=True)
        cu.add_argument("--description", default="")

    du = sub.add_parser("delete-user")
    du.add_argument("--username", required=True)

    gp = sub.add_parser("get-permissions")
    gp.add_argument("--username", required=True)

    cp = sub.add_parser("create-permissions")
    cp.add_argument("--username", required=True)
    cp.add_argument("--permission", dest="permissions", action="append", default=[],
                    help="Canonical permission name, e.g. Overall/Read (repeatable)")

    up = sub.add_parser("update-permissions")
    up.add_argument("--username", required=True)
    up.add_argument("--permission", dest="permissions", action="append", default=[])
    up.add_argument("--dry-run", action="store_true", help="Only print the changes that would be made")

    dp = sub.add_parser("delete-permissions")
    dp.add_argument("--username", required=True)

    return parser


def main(argv=None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.cmd in ("create-user", "update-user") and not args.password:
        parser.error("Missing --password (or JENKINS_NEW_USER_PASSWORD)")

    try:
        settings = load_settings()
        admin = build_admin(settings)

        if args.cmd == "ping":
            version = settings.create_client().server_version()
            print(f"Jenkins {version or 'unknown version'} at {settings.server_url}")
        elif args.cmd == "list-permissions":
            _print_json(admin.available_permissions())
        elif args.cmd == "get-user":
            user = admin.get_local_user(args.username)
            if not user.exists:
                print(f"[get-user] User '{args.username}' not found", file=sys.stderr)
                sys.exit(1)
            _print_json(user.to_dict())
        elif args.cmd == "create-user":
            admin.create_local_user(args.username, args.password, args.fullname, args.email, args.description)
        elif args.cmd == "update-user":
            admin.update_local_user(args.username, args.password, args.fullname, args.email, args.description)
        elif args.cmd == "delete-user":
            admin.delete_local_user(args.username)
        elif args.cmd == "get-permissions":
            _print_json(admin.get_user_permissions(args.username).to_dict())
        elif args.cmd == "create-permissions":
            admin.create_user_permissions(args.username, args.permissions)
        elif args.cmd == "update-permissions":
            if args.dry_run:
                plan = admin.plan_user_permissions(args.username, args.permissions)
                _print_json({
                    "username": plan.username,
                    "add": list(plan.to_add),
                    "remove": list(plan.to_remove),
                    "unknown": list(plan.unknown),
                })
            else:
                admin.update_user_permissions(args.username, args.permissions)
        elif args.cmd == "delete-permissions":
            admin.delete_user_permissions(args.username)
    except (JenkinsError, ValueError, RuntimeError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
