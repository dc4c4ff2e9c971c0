"""CLI runs against a throwaway local SQLite store, plus remote sign-in."""

from __future__ import annotations

from pathlib import Path

import pytest

import main as cli
from expense_tracker import config as config_module
from expense_tracker.auth import SessionManager
from expense_tracker.config import AppConfig
from expense_tracker.services.auth_service import AuthService


@pytest.fixture
def local_store(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("EXPENSE_TRACKER_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("EXPENSE_TRACKER_SQLITE_PATH", str(tmp_path / "expenses.db"))
    monkeypatch.setenv("EXPENSE_TRACKER_EXPORT_DIRECTORY", str(tmp_path / "exports"))
    monkeypatch.setattr(config_module, "_config_instance", None)
    return tmp_path


def _run(capsys, *argv: str) -> tuple[int, str, str]:
    code = cli.main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def _category_id(capsys, name: str) -> str:
    _, out, _ = _run(capsys, "categories", "list")
    for line in out.splitlines():
        category_id, _color, category_name = line.split("  ", 2)
        if category_name == name:
            return category_id
    raise AssertionError(f"category {name!r} not listed")


def test_add_list_and_summary(local_store: Path, capsys) -> None:
    code, out, _ = _run(capsys, "add", "Coffee", "50", "Food & Dining")
    assert code == 0
    assert "[Success] Expense added successfully!" in out
    _run(capsys, "add", "Bus", "20", "Transportation")
    _run(capsys, "add", "Lunch", "150", "Food & Dining")

    code, out, _ = _run(capsys, "list", "--category", "Food & Dining", "--sort", "amount", "--order", "asc")
    assert code == 0
    lines = out.splitlines()
    assert "Coffee" in lines[0] and "Lunch" in lines[1]
    assert lines[-1] == "2 expense(s)"

    code, out, _ = _run(capsys, "summary")
    assert code == 0
    assert "Total:      ₹220.00" in out
    assert "Food & Dining" in out and "90.9%" in out


def test_invalid_amount_fails(local_store: Path, capsys) -> None:
    code, _, err = _run(capsys, "add", "Coffee", "0", "Food & Dining")
    assert code == 1
    assert "Amount must be a number greater than zero." in err


def test_bad_date_is_a_usage_error(local_store: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["list", "--from", "15/03/2024"])
    assert excinfo.value.code == 2


def test_categories_seed_and_in_use_delete(local_store: Path, capsys) -> None:
    food_id = _category_id(capsys, "Food & Dining")
    _run(capsys, "add", "Coffee", "4.50", "Food & Dining")

    code, _, err = _run(capsys, "categories", "delete", food_id)
    assert code == 1
    assert "[Cannot Delete Category]" in err
    assert "1 expense(s)" in err


def test_category_rename_moves_expenses(local_store: Path, capsys) -> None:
    food_id = _category_id(capsys, "Food & Dining")
    _run(capsys, "add", "Coffee", "4.50", "Food & Dining")

    code, out, _ = _run(capsys, "categories", "edit", food_id, "--name", "Meals")
    assert code == 0
    assert "1 expense(s) moved to 'Meals'" in out

    _, out, _ = _run(capsys, "list", "--category", "Meals")
    assert "Coffee" in out
    _, out, _ = _run(capsys, "categories", "orphans")
    assert out.strip() == ""


def test_bulk_recategorize_and_delete(local_store: Path, capsys) -> None:
    ids = [
        _run(capsys, "add", name, "5", "Shopping")[1].splitlines()[0]
        for name in ("Pen", "Book", "Bag")
    ]

    code, out, _ = _run(capsys, "recategorize", "Other", ids[0], ids[1])
    assert code == 0
    assert "2 expense(s) updated successfully!" in out

    code, out, _ = _run(capsys, "delete", ids[0], ids[2])
    assert "2 expense(s) deleted successfully!" in out
    _, out, _ = _run(capsys, "list")
    assert out.splitlines()[-1] == "1 expense(s)"


def test_repeated_ids_stay_selected(local_store: Path, capsys) -> None:
    ids = [
        _run(capsys, "add", name, "5", "Shopping")[1].splitlines()[0]
        for name in ("Pen", "Book")
    ]

    code, out, _ = _run(capsys, "recategorize", "Other", ids[0], ids[0])
    assert code == 0
    assert "1 expense(s) updated successfully!" in out

    code, out, err = _run(capsys, "delete", ids[0], ids[1], ids[0])
    assert code == 0
    assert "2 expense(s) deleted successfully!" in out
    assert "No expenses selected" not in err
    _, out, _ = _run(capsys, "list")
    assert out.splitlines()[-1] == "0 expense(s)"


def test_export_writes_file(local_store: Path, capsys) -> None:
    expense_id = _run(capsys, "add", "Coffee", "4.50", "Food & Dining")[1].splitlines()[0]
    _run(capsys, "add", "Bus", "20", "Transportation")

    code, out, _ = _run(capsys, "export", "csv")
    assert code == 0
    path = Path(out.splitlines()[0])
    assert path.parent == local_store / "exports"
    assert path.name.startswith("my_expenses_") and path.suffix == ".csv"
    assert len(path.read_text(encoding="utf-8").splitlines()) == 3

    code, out, _ = _run(capsys, "export", "xlsx", "--ids", expense_id, "--output", str(local_store / "picked"))
    assert code == 0
    assert Path(out.splitlines()[0]).name.startswith("selected_expenses_")
    assert "1 selected expenses exported to Excel successfully!" in out


def test_signout_with_local_store(local_store: Path, capsys) -> None:
    code, out, _ = _run(capsys, "signout")
    assert code == 0
    assert "Signed out." in out


@pytest.fixture
def remote_sign_in(remote_db, logger):
    session = SessionManager()
    services = {"auth_service": AuthService(db=remote_db, session=session, logger=logger)}
    config = AppConfig(_env_file=None, STORE_BACKEND="supabase", SUPABASE_URL="https://example.supabase.co")
    return services, config, session


def test_sign_in_reuses_client_session(remote_sign_in, fake_supabase, logger, monkeypatch) -> None:
    services, config, session = remote_sign_in
    fake_supabase.auth.current = fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1")
    monkeypatch.setattr(cli.getpass, "getpass", _no_prompt)

    args = cli.build_parser().parse_args(["--email", "", "summary"])
    assert cli._sign_in(args, config, services, logger)
    assert session.current_user.id == "user-1"


def test_sign_in_falls_back_to_password(remote_sign_in, fake_supabase, logger, monkeypatch) -> None:
    services, config, session = remote_sign_in
    fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1")
    monkeypatch.setenv("EXPENSE_TRACKER_PASSWORD", "s3cret")

    args = cli.build_parser().parse_args(["--email", "asha@example.com", "summary"])
    assert cli._sign_in(args, config, services, logger)
    assert session.current_user.email == "asha@example.com"


def _no_prompt(prompt: str = "") -> str:
    raise AssertionError("password prompt should not be shown")
