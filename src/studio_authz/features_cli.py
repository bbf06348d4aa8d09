"""
studio_authz.features_cli

Admin tooling for feature grants.

Usage:
  python -m studio_authz.features_cli list [--username NAME]
  python -m studio_authz.features_cli grant --username NAME FEATURE [FEATURE ...]
  python -m studio_authz.features_cli revoke --username NAME FEATURE [FEATURE ...]
  python -m studio_authz.features_cli create-admin --username NAME --email EMAIL --password PW

Every name is validated against the feature catalog before anything is written.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from studio_authz.auth.passwords import hash_password
from studio_authz.authz.errors import UnknownFeatureError
from studio_authz.authz.features import CATALOG
from studio_authz.db.init_db import init_db
from studio_authz.db.repositories.users import UserRepo
from studio_authz.db.session import create_engine, create_sessionmaker, session_scope
from studio_authz.observability.logging import configure_logging, get_logger
from studio_authz.settings import Settings, get_settings

log = get_logger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studio_authz.features_cli")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List the catalog, or one user's features")
    p_list.add_argument("--username")

    for name in ("grant", "revoke"):
        p = sub.add_parser(name, help=f"{name.capitalize()} features for a user")
        p.add_argument("--username", required=True)
        p.add_argument("features", nargs="+")

    p_admin = sub.add_parser("create-admin", help="Create a user holding every feature")
    p_admin.add_argument("--username", required=True)
    p_admin.add_argument("--email", required=True)
    p_admin.add_argument("--password", required=True)
    return parser


def _print_catalog() -> None:
    for group in sorted(CATALOG.groups):
        print(f"[{group}]")
        for feature in sorted(CATALOG.by_group(group)):
            print(f"  {feature}")


async def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "list" and args.username is None:
        _print_catalog()
        return EXIT_OK

    if args.command in ("grant", "revoke"):
        try:
            requested = CATALOG.validate(args.features)
        except UnknownFeatureError as e:
            # Refuse before touching storage.
            print(e.message, file=sys.stderr)
            return EXIT_INVALID

    engine = create_engine(settings)
    try:
        if settings.env in ("dev", "test"):
            await init_db(engine)
        async with session_scope(create_sessionmaker(engine)) as session:
            repo = UserRepo(session)

            if args.command == "create-admin":
                if await repo.exists(username=args.username, email=args.email):
                    print(f"User already exists: {args.username}", file=sys.stderr)
                    return EXIT_INVALID
                await repo.create(
                    username=args.username,
                    email=args.email,
                    password_hash=hash_password(args.password),
                    features=CATALOG,
                )
                log.info("admin_created", username=args.username)
                print(f"Admin created: {args.username}")
                return EXIT_OK

            user = await repo.get_by_username(args.username)
            if user is None:
                print(f"User not found: {args.username}", file=sys.stderr)
                return EXIT_NOT_FOUND

            current = set(user.features or [])
            if args.command == "grant":
                await repo.set_features(user, current | requested)
                log.info("features_granted", username=user.username, features=sorted(requested))
            elif args.command == "revoke":
                await repo.set_features(user, current - requested)
                log.info("features_revoked", username=user.username, features=sorted(requested))

            for feature in sorted(user.features):
                print(feature)
            return EXIT_OK
    finally:
        await engine.dispose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.log_json,
    )
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
