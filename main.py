"""
Expense Tracker Command-Line Entry Point.

Bootstraps the entire dependency graph via constructor injection,
initialises the local SQLite schema when the local store is in use, signs
the user in and dispatches one command to the screen controllers.  Every
subsystem is wired here; there are no module-level globals.

Usage::

    python main.py --email me@example.com summary
    python main.py list --category "Food & Dining" --sort amount --order asc
    python main.py add "Coffee" 4.50 "Food & Dining"
    python main.py export xlsx --from 2024-01-01 --output ~/Downloads

The password is read from ``EXPENSE_TRACKER_PASSWORD`` or prompted for.
With ``EXPENSE_TRACKER_STORE_BACKEND=sqlite`` no sign-in is needed.
"""

from __future__ import annotations

import argparse
import atexit
import getpass
import os
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Optional, TypedDict

from expense_tracker.auth import AuthenticationError, SessionManager, require_auth
from expense_tracker.config import AppConfig, get_config
from expense_tracker.controllers import (
    CategoryController,
    DashboardController,
    ExpenseFormController,
    ExpenseListController,
    NotificationCenter,
    RefreshTrigger,
)
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger, get_logger
from expense_tracker.models.enums import ExportFormat, SortField, SortOrder
from expense_tracker.models.expense import Expense
from expense_tracker.models.filters import ALL_CATEGORIES
from expense_tracker.schema import initialize_schema
from expense_tracker.services import ServiceContainer, create_services

DESCRIPTION = "Personal expense tracker"


class Screens(TypedDict):
    """The controllers one CLI invocation can drive."""

    dashboard: DashboardController
    expense_form: ExpenseFormController
    expense_list: ExpenseListController
    categories: CategoryController


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Expected YYYY-MM-DD date format") from exc


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Not a number: {value!r}") from exc


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--category", default=ALL_CATEGORIES, help="Exact category name")
    parser.add_argument("--search", default="", help="Substring of the expense name")
    parser.add_argument("--from", dest="date_from", type=_parse_date, help="YYYY-MM-DD")
    parser.add_argument("--to", dest="date_to", type=_parse_date, help="YYYY-MM-DD, inclusive")
    parser.add_argument("--min", dest="amount_min", type=_parse_amount)
    parser.add_argument("--max", dest="amount_max", type=_parse_amount)
    parser.add_argument(
        "--sort", choices=[f.value for f in SortField], default=SortField.DATE.value,
    )
    parser.add_argument(
        "--order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-tracker", description=DESCRIPTION)
    parser.add_argument(
        "--email",
        default=os.environ.get("EXPENSE_TRACKER_EMAIL", ""),
        help="Account email (Supabase store only)",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("summary", help="Totals, trailing 7/30 days and category breakdown")

    list_cmd = sub.add_parser("list", help="List expenses")
    _add_filter_arguments(list_cmd)

    add = sub.add_parser("add", help="Record an expense")
    add.add_argument("name")
    add.add_argument("amount", type=_parse_amount)
    add.add_argument("category")

    edit = sub.add_parser("edit", help="Edit an expense")
    edit.add_argument("id")
    edit.add_argument("--name")
    edit.add_argument("--amount", type=_parse_amount)
    edit.add_argument("--category")

    delete = sub.add_parser("delete", help="Delete one or more expenses")
    delete.add_argument("ids", nargs="+")

    recategorize = sub.add_parser("recategorize", help="Move expenses to a category")
    recategorize.add_argument("category")
    recategorize.add_argument("ids", nargs="+")

    export = sub.add_parser("export", help="Export expenses to CSV or XLSX")
    export.add_argument("format", choices=[f.value for f in ExportFormat])
    export.add_argument("--ids", nargs="+", help="Export only these expenses")
    export.add_argument("--output", type=Path, help="Target directory")
    _add_filter_arguments(export)

    categories = sub.add_parser("categories", help="Manage categories")
    cat_sub = categories.add_subparsers(dest="cat_cmd", required=True)
    cat_sub.add_parser("list", help="List categories (seeds the defaults on first use)")
    cat_add = cat_sub.add_parser("add")
    cat_add.add_argument("name")
    cat_add.add_argument("--color")
    cat_edit = cat_sub.add_parser("edit")
    cat_edit.add_argument("id")
    cat_edit.add_argument("--name")
    cat_edit.add_argument("--color")
    cat_delete = cat_sub.add_parser("delete")
    cat_delete.add_argument("id")
    cat_sub.add_parser("orphans", help="Expense categories that match no category")

    sub.add_parser("signout", help="End the Supabase session")
    return parser


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_notifications(notifications: NotificationCenter) -> bool:
    """Print queued notifications; ``True`` if none was an error."""
    ok = True
    for note in notifications.drain():
        stream = sys.stderr if note.is_error else sys.stdout
        print(f"[{note.title}] {note.description}", file=stream)
        ok = ok and not note.is_error
    return ok


def _print_expenses(expenses: list[Expense], currency: str) -> None:
    for e in expenses:
        print(
            f"{e.id}  {e.created_at:%Y-%m-%d}  {currency}{e.expense_amount:>10.2f}  "
            f"{e.category:<20}  {e.expense_name}"
        )
    print(f"{len(expenses)} expense(s)")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _handle_summary(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    summary = screens["dashboard"].refresh(force=True)
    if summary is None:
        return
    cur = config.CURRENCY_SYMBOL
    print(f"Expenses:   {summary.total_expenses}")
    print(f"Total:      {cur}{summary.total_amount:.2f}")
    print(f"Last 7 d:   {cur}{summary.weekly_total:.2f}")
    print(f"Last 30 d:  {cur}{summary.monthly_total:.2f}")
    for item in summary.category_breakdown:
        print(
            f"  {item.color}  {item.category:<20} {cur}{item.amount:>10.2f}  "
            f"{item.percentage:5.1f}%  ({item.count})"
        )


def _apply_filter_args(args: argparse.Namespace, controller: ExpenseListController) -> None:
    controller.set_filters(
        category=args.category,
        search_term=args.search,
        date_from=args.date_from,
        date_to=args.date_to,
        amount_min=args.amount_min,
        amount_max=args.amount_max,
        sort_by=SortField(args.sort),
        sort_order=SortOrder(args.order),
    )


def _handle_list(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["expense_list"]
    if not controller.load():
        return
    _apply_filter_args(args, controller)
    _print_expenses(controller.visible, config.CURRENCY_SYMBOL)


def _handle_add(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    form = screens["expense_form"]
    form.expense_name = args.name
    form.expense_amount = args.amount
    form.category = args.category
    created = form.submit()
    if created is not None:
        print(created.id)


def _handle_edit(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["expense_list"]
    if not controller.load():
        return
    current = controller.start_edit(args.id)
    if current is None:
        return
    changes = {
        "expense_name": args.name if args.name is not None else current.expense_name,
        "expense_amount": args.amount if args.amount is not None else current.expense_amount,
        "category": args.category if args.category is not None else current.category,
    }
    controller.save_edit(changes)


def _handle_delete(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["expense_list"]
    if len(args.ids) == 1:
        controller.delete(args.ids[0])
        return
    if not controller.load():
        return
    for expense_id in args.ids:
        controller.select(expense_id)
    controller.delete_selected()


def _handle_recategorize(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["expense_list"]
    if not controller.load():
        return
    for expense_id in args.ids:
        controller.select(expense_id)
    controller.reassign_selected(args.category)


def _handle_export(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["expense_list"]
    if not controller.load():
        return
    _apply_filter_args(args, controller)
    if args.output is not None:
        controller.export_directory = args.output
    fmt = ExportFormat(args.format)
    if args.ids:
        for expense_id in args.ids:
            controller.select(expense_id)
        path = controller.export_selected(fmt)
    else:
        path = controller.export_visible(fmt)
    if path is not None:
        print(path)


def _handle_categories(args: argparse.Namespace, screens: Screens, config: AppConfig) -> None:
    controller = screens["categories"]
    if args.cat_cmd == "list":
        for category in screens["expense_form"].load_categories():
            print(f"{category.id}  {category.color}  {category.name}")
    elif args.cat_cmd == "add":
        controller.add(args.name, args.color or controller.palette[0])
    elif args.cat_cmd == "edit":
        if not controller.load():
            return
        current = controller.start_edit(args.id)
        if current is None:
            return
        rename = controller.save_edit(args.name or current.name, args.color or current.color)
        if rename is not None and rename.renamed:
            print(f"{rename.expenses_updated} expense(s) moved to '{rename.new_name}'")
        if controller.pending_rename is not None:
            controller.retry_rename()
    elif args.cat_cmd == "delete":
        controller.delete(args.id)
    elif args.cat_cmd == "orphans":
        for name in controller.orphaned_names():
            print(name)


_HANDLERS: dict[str, Callable[[argparse.Namespace, Screens, AppConfig], None]] = {
    "summary": _handle_summary,
    "list": _handle_list,
    "add": _handle_add,
    "edit": _handle_edit,
    "delete": _handle_delete,
    "recategorize": _handle_recategorize,
    "export": _handle_export,
    "categories": _handle_categories,
}


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def build_screens(
    services: ServiceContainer,
    session: SessionManager,
    config: AppConfig,
    notifications: NotificationCenter,
    trigger: RefreshTrigger,
) -> Screens:
    """Wire one controller per screen around a shared queue and trigger."""
    return Screens(
        dashboard=DashboardController(
            summary_service=services["summary_service"],
            session=session,
            notifications=notifications,
            trigger=trigger,
        ),
        expense_form=ExpenseFormController(
            expense_service=services["expense_service"],
            category_service=services["category_service"],
            session=session,
            notifications=notifications,
            trigger=trigger,
        ),
        expense_list=ExpenseListController(
            expense_service=services["expense_service"],
            category_service=services["category_service"],
            export_service=services["export_service"],
            session=session,
            notifications=notifications,
            trigger=trigger,
            tz=config.timezone,
            export_directory=config.EXPORT_DIRECTORY,
        ),
        categories=CategoryController(
            category_service=services["category_service"],
            session=session,
            notifications=notifications,
            trigger=trigger,
        ),
    )


def _sign_in(
    args: argparse.Namespace,
    config: AppConfig,
    services: ServiceContainer,
    logger: StructuredLogger,
) -> bool:
    auth = services["auth_service"]
    if config.STORE_BACKEND == "sqlite":
        return auth.use_local_profile(config.LOCAL_USER_ID, config.LOCAL_USER_EMAIL).success

    # An existing client session skips the password prompt.
    if auth.get_session_user().success:
        return True
    if not args.email:
        print("An account email is required (--email or EXPENSE_TRACKER_EMAIL).", file=sys.stderr)
        return False
    password = os.environ.get("EXPENSE_TRACKER_PASSWORD") or getpass.getpass("Password: ")
    result = auth.login(args.email, password)
    if not result.success:
        logger.warning("Sign-in failed: %s", result.error_code)
        print(f"[Error] {result.error_message}", file=sys.stderr)
    return result.success


def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point: wire dependencies and run one command."""
    args = build_parser().parse_args(argv)
    logger: StructuredLogger = get_logger("main")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase client and/or local SQLite store)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=Path(config.SQLITE_PATH) if config.STORE_BACKEND == "sqlite" else None,
        logger=get_logger("database"),
    )
    # DatabaseManager.close() is idempotent; this covers unclean exits.
    atexit.register(db.close)

    # ------------------------------------------------------------------
    # 3. SQLite Schema Initialization (idempotent)
    # ------------------------------------------------------------------
    if db.has_sqlite:
        initialize_schema(db.sqlite, get_logger("schema"))

    # ------------------------------------------------------------------
    # 4. Session, services and screen controllers
    # ------------------------------------------------------------------
    session = SessionManager()
    services = create_services(db=db, config=config, session=session)
    notifications = NotificationCenter()
    screens = build_screens(services, session, config, notifications, RefreshTrigger())

    # ------------------------------------------------------------------
    # 5. Sign in and dispatch
    # ------------------------------------------------------------------
    try:
        if not _sign_in(args, config, services, logger):
            return 1

        if args.cmd == "signout":
            services["auth_service"].logout()
            print("Signed out.")
            return 0

        run = require_auth(session)(_HANDLERS[args.cmd])
        run(args, screens, config)
    except AuthenticationError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    return 0 if _print_notifications(notifications) else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
