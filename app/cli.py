"""
Operator CLI.

Usage:
    # Create the schema
    python -m app.cli init-db

    # Bootstrap the first admin (prints the token once)
    python -m app.cli issue-token owner@example.com --role admin

    # Run one periodic task without the scheduler
    python -m app.cli run-task expire_subscriptions
"""

import argparse
import json
import logging
import sys

from app.core.config import settings
from app.shared.logging import configure_logging

logger = logging.getLogger(__name__)

TASK_NAMES = (
    "process_notification_jobs",
    "expire_subscriptions",
    "check_range_breaks",
    "market_close",
    "subscription_reminders",
    "training_reminders",
)


def cmd_init_db(args: argparse.Namespace) -> int:
    from app.infrastructure.database import ensure_schema, get_engine

    ensure_schema(get_engine())
    logger.info("Schema ready.")
    return 0


def cmd_issue_token(args: argparse.Namespace) -> int:
    from app.application.accounts.dtos import ProvisionUserCommand
    from app.application.accounts.provision import ProvisionUserUseCase
    from app.domain.accounts.errors import InvalidUserError
    from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
    from app.infrastructure.database import ensure_schema, get_engine

    engine = get_engine()
    ensure_schema(engine)
    use_case = ProvisionUserUseCase(UserRepositoryAdapter(engine))
    try:
        result = use_case.execute(
            ProvisionUserCommand(email=args.email, name=args.name, role=args.role)
        )
    except InvalidUserError as exc:
        logger.error(exc.message)
        return 2
    logger.info("Token issued for %s (%s).", result.user.email, result.user.role.value)
    # The token goes to stdout only, never through logging.
    print(result.api_token)
    return 0


def cmd_run_task(args: argparse.Namespace) -> int:
    from app.infrastructure.scheduler import PlatformScheduler
    from app.main import build_scheduled_tasks

    run = PlatformScheduler(build_scheduled_tasks()).run_now(args.task)
    details = run.details.__dict__ if hasattr(run.details, "__dict__") else run.details
    summary = {
        "task": run.task_name,
        "succeeded": run.succeeded,
        "details": details,
        "error": run.error,
    }
    print(json.dumps(summary, default=str))
    return 0 if run.succeeded else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m app.cli", description=settings.project_name)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create missing tables")
    init_parser.set_defaults(func=cmd_init_db)

    token_parser = subparsers.add_parser("issue-token", help="Create a user and issue an API token")
    token_parser.add_argument("email", help="User email")
    token_parser.add_argument("--name", default="", help="Display name for a new user")
    token_parser.add_argument(
        "--role", choices=["normal", "suscriptor", "admin"], default=None,
        help="Role to set (keeps the current role when omitted)",
    )
    token_parser.set_defaults(func=cmd_issue_token)

    task_parser = subparsers.add_parser("run-task", help="Run one periodic task now")
    task_parser.add_argument("task", choices=TASK_NAMES)
    task_parser.set_defaults(func=cmd_run_task)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level)
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
