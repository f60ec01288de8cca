"""CLI commands for database and maintenance operations."""

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NoReturn

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from parish import create_app
from parish.app import App
from parish.database import (
    check_db_connection,
    get_current_revision,
    get_pending_migrations,
    upgrade_database,
)
from parish.startup import load_test_data_hook


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parish registry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    upgrade_parser = subparsers.add_parser(
        "upgrade-db",
        help="Apply database migrations",
    )
    upgrade_parser.add_argument("--recreate", action="store_true")
    upgrade_parser.add_argument("--yes-i-am-sure", action="store_true")

    load_test_data_parser = subparsers.add_parser(
        "load-test-data",
        help="Recreate database and load sample parish data",
    )
    load_test_data_parser.add_argument("--yes-i-am-sure", action="store_true")

    subparsers.add_parser(
        "warm-cache",
        help="Preload dashboard, member and financial statistics",
    )

    subparsers.add_parser(
        "certificate-report",
        help="Print marriage certificate completeness for married members",
    )

    return parser


@contextmanager
def _session_scope(app: App) -> Iterator[Session]:
    container = app.container
    with app.app_context():
        session = container.db_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            container.db_session.reset()


def handle_upgrade_db(
    app: App, recreate: bool = False, confirmed: bool = False
) -> None:
    with app.app_context():
        if not check_db_connection():
            print("Cannot connect to database.", file=sys.stderr)
            sys.exit(1)

        print(f"Using database: {app.config['SQLALCHEMY_DATABASE_URI']}")

        if recreate and not confirmed:
            print("--recreate requires --yes-i-am-sure flag", file=sys.stderr)
            sys.exit(1)

        current_rev = get_current_revision()
        pending = get_pending_migrations()

        if current_rev:
            print(f"Current database revision: {current_rev}")
        else:
            print("Database has no migration version")

        if recreate or pending:
            try:
                applied = upgrade_database(recreate=recreate)
                if applied:
                    print(f"Successfully applied {len(applied)} migration(s)")
                else:
                    print("Database migration completed")
            except Exception as e:
                print(f"Migration failed: {e}", file=sys.stderr)
                sys.exit(1)
        else:
            print("Database is up to date.")


def handle_load_test_data(app: App, confirmed: bool = False) -> None:
    with app.app_context():
        if not check_db_connection():
            print("Cannot connect to database.", file=sys.stderr)
            sys.exit(1)

        print(f"Using database: {app.config['SQLALCHEMY_DATABASE_URI']}")

        if not confirmed:
            print("--yes-i-am-sure flag is required", file=sys.stderr)
            sys.exit(1)

        try:
            print("Recreating database from scratch...")
            applied = upgrade_database(recreate=True)
            if applied:
                print(f"Database recreated with {len(applied)} migration(s)")

            load_test_data_hook(app)
            print("Sample data loaded")

        except Exception as e:
            print(f"Failed to load test data: {e}", file=sys.stderr)
            sys.exit(1)


def handle_warm_cache(app: App) -> None:
    with _session_scope(app):
        cache_service = app.container.cache_service()
        if not cache_service.warmup_cache():
            print("Cache warmup failed", file=sys.stderr)
            sys.exit(1)
        stats = cache_service.get_cache_stats()

    print(f"Cache warmed up: {stats['entries']} entries ({stats['cache_driver']})")


def handle_certificate_report(app: App) -> None:
    with _session_scope(app):
        member_service = app.container.member_service()
        validator = app.container.certificate_validator()
        report = validator.generate_summary_report(member_service.get_married_members())

    print(f"Married members: {report.total_members}")
    print(f"Complete certificates: {report.valid_certificates}")
    print(f"Incomplete certificates: {report.incomplete_certificates}")
    print(f"Average completeness: {report.average_completeness}%")
    if report.common_missing_fields:
        print("Most common missing fields:")
        for field_name, count in report.common_missing_fields.items():
            print(f"  {field_name}: {count}")
    for recommendation in report.recommendations:
        print(f"! {recommendation}")


def main() -> NoReturn:
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    app = create_app(skip_background_services=True)

    if args.command == "upgrade-db":
        handle_upgrade_db(
            app=app,
            recreate=args.recreate,
            confirmed=args.yes_i_am_sure,
        )
    elif args.command == "load-test-data":
        handle_load_test_data(
            app=app,
            confirmed=args.yes_i_am_sure,
        )
    elif args.command == "warm-cache":
        handle_warm_cache(app)
    elif args.command == "certificate-report":
        handle_certificate_report(app)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
