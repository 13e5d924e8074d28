"""
lingala_api.api.__main__

Command line entrypoint: `python -m lingala_api.api [serve|seed|create-admin]`.

Responsibilities:
- `serve` (default): run the ASGI app under uvicorn with structlog owning log output.
- `seed`: create tables if needed and load the sample beginner course.
- `create-admin`: provision an admin account; the password comes from
  `LINGALA_ADMIN_PASSWORD` or an interactive prompt, never from argv.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import os
import sys

import uvicorn

from lingala_api.api.app import create_app
from lingala_api.auth.models import ADMIN_ROLES
from lingala_api.auth.passwords import get_hasher
from lingala_api.db.init_db import init_db, seed_sample_catalog
from lingala_api.db.session import create_engine, create_sessionmaker
from lingala_api.errors import ApiError
from lingala_api.observability.logging import configure_logging
from lingala_api.services.accounts import AccountService
from lingala_api.settings import Settings, get_settings

ADMIN_PASSWORD_ENV = "LINGALA_ADMIN_PASSWORD"


def _serve(settings: Settings, _: argparse.Namespace) -> int:
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )
    return 0


async def _seed(settings: Settings) -> int:
    engine = create_engine(settings)
    try:
        await init_db(engine)
        async with create_sessionmaker(engine)() as session:
            course = await seed_sample_catalog(session)
    finally:
        await engine.dispose()
    print(f"seeded course {course.id}: {course.title}")
    return 0


async def _create_admin(settings: Settings, args: argparse.Namespace) -> int:
    password = os.environ.get(ADMIN_PASSWORD_ENV) or getpass.getpass("Admin password: ")
    engine = create_engine(settings)
    try:
        await init_db(engine)
        async with create_sessionmaker(engine)() as session:
            service = AccountService(session, hasher=get_hasher(settings.password_hasher))
            admin = await service.create_admin(
                email=args.email, password=password, name=args.name, role=args.role
            )
    except ApiError as e:
        print(f"error: {e.message} ({e.code})", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()
    print(f"created admin {admin.id} <{admin.email}> role={admin.role}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lingala-api")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="run the HTTP API")
    sub.add_parser("seed", help="load the sample beginner course")
    admin = sub.add_parser("create-admin", help="provision an admin account")
    admin.add_argument("--email", required=True)
    admin.add_argument("--name", required=True)
    admin.add_argument("--role", default="admin", choices=sorted(ADMIN_ROLES))
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        renderer=settings.log_renderer,
    )
    if args.command == "seed":
        return asyncio.run(_seed(settings))
    if args.command == "create-admin":
        return asyncio.run(_create_admin(settings, args))
    return _serve(settings, args)


if __name__ == "__main__":
    raise SystemExit(main())
