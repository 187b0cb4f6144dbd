"""Tests del servicio de cuentas."""

import uuid
from decimal import Decimal

import accounts
import charts
import entries
from conftest import VALID_PASSWORD
from errors import (
    NAME_TAKEN,
    BadRequestError,
    ConflictError,
    NotFoundError,
    Ok,
    UnauthorizedError,
    ValidationError,
)
from models import Chart, ChartType, Entry, User


def test_sign_up_creates_user_with_hashed_password(db):
    result = accounts.sign_up(db, "alice", "Abcdef123x")

    assert isinstance(result, Ok)
    user = db.get(User, result.value)
    assert user.name == "alice"
    assert user.password_hash != "Abcdef123x"
    assert user.created_at is not None


def test_sign_up_same_name_twice_fails(db):
    assert isinstance(accounts.sign_up(db, "alice", VALID_PASSWORD), Ok)

    result = accounts.sign_up(db, "alice", VALID_PASSWORD)

    assert isinstance(result, ConflictError)
    assert db.query(User).count() == 1


def test_sign_up_name_clash_at_commit_is_conflict(db):
    """
    Otro usuario con el mismo nombre pendiente en la sesión: la comprobación
    previa no lo ve (autoflush desactivado) y el índice único salta en el commit.
    """
    db.add(User(name="alice", password_hash="not-a-real-hash"))

    result = accounts.sign_up(db, "alice", VALID_PASSWORD)

    assert result == ConflictError(NAME_TAKEN)
    # Se hizo rollback: la sesión sigue sirviendo
    assert db.query(User).count() == 0
    assert isinstance(accounts.sign_up(db, "alice", VALID_PASSWORD), Ok)
    assert db.query(User).one().name == "alice"


def test_sign_up_names_are_case_sensitive(db):
    assert isinstance(accounts.sign_up(db, "alice", VALID_PASSWORD), Ok)
    assert isinstance(accounts.sign_up(db, "Alice", VALID_PASSWORD), Ok)


def test_sign_up_validates_input(db):
    assert isinstance(accounts.sign_up(db, "", VALID_PASSWORD), ValidationError)
    assert isinstance(accounts.sign_up(db, "x" * 51, VALID_PASSWORD), ValidationError)
    assert isinstance(accounts.sign_up(db, "alice", "nouppercase1"), ValidationError)
    assert db.query(User).count() == 0


def test_sign_in_success(db, user_id):
    result = accounts.sign_in(db, "tester", VALID_PASSWORD)

    assert isinstance(result, Ok)
    assert result.value.id == user_id


def test_sign_in_does_not_reveal_which_part_failed(db, user_id):
    """Usuario desconocido y contraseña incorrecta dan el mismo error"""
    wrong_password = accounts.sign_in(db, "tester", "WrongPass123")
    unknown_user = accounts.sign_in(db, "nobody", VALID_PASSWORD)

    assert isinstance(wrong_password, UnauthorizedError)
    assert wrong_password == unknown_user


def test_get_account_counts_charts(db, user_id):
    charts.create_chart(db, user_id, "Sleep", ChartType.Counter)
    charts.create_chart(db, user_id, "Mood", ChartType.Scale)

    summary = accounts.get_account(db, user_id).value

    assert summary.id == user_id
    assert summary.name == "tester"
    assert summary.chart_count == 2


def test_get_account_unknown_user(db):
    assert isinstance(accounts.get_account(db, uuid.uuid4()), NotFoundError)


def test_update_account_requires_current_password(db, user_id):
    result = accounts.update_account(db, user_id, "WrongPass123", new_name="renamed")

    assert isinstance(result, BadRequestError)
    assert db.get(User, user_id).name == "tester"


def test_update_account_requires_new_data(db, user_id):
    result = accounts.update_account(db, user_id, VALID_PASSWORD)

    assert isinstance(result, ValidationError)


def test_update_account_rename_and_change_password(db, user_id):
    result = accounts.update_account(
        db, user_id, VALID_PASSWORD, new_name="renamed", new_password="NewPassword99"
    )

    assert isinstance(result, Ok)
    assert isinstance(accounts.sign_in(db, "renamed", "NewPassword99"), Ok)
    assert isinstance(accounts.sign_in(db, "renamed", VALID_PASSWORD), UnauthorizedError)
    assert isinstance(accounts.sign_in(db, "tester", "NewPassword99"), UnauthorizedError)


def test_update_account_name_taken(db, user_id, other_user_id):
    result = accounts.update_account(db, user_id, VALID_PASSWORD, new_name="intruder")

    assert isinstance(result, ConflictError)


def test_update_account_keeping_own_name_is_allowed(db, user_id):
    result = accounts.update_account(db, user_id, VALID_PASSWORD, new_name="tester")

    assert isinstance(result, Ok)


def test_update_account_validates_new_password(db, user_id):
    result = accounts.update_account(db, user_id, VALID_PASSWORD, new_password="short1A")

    assert isinstance(result, ValidationError)


def test_delete_account_wrong_password(db, user_id):
    result = accounts.delete_account(db, user_id, "WrongPass123")

    assert isinstance(result, BadRequestError)
    assert db.get(User, user_id) is not None


def test_delete_account_cascades_to_charts_and_entries(db, user_id, other_user_id):
    chart = charts.create_chart(db, user_id, "Sleep", ChartType.Counter).value
    entries.create_entry(db, chart.id, user_id, chart.created_at.date(), Decimal("7"))
    charts.create_chart(db, other_user_id, "Water", ChartType.Counter)

    result = accounts.delete_account(db, user_id, VALID_PASSWORD)

    assert isinstance(result, Ok)
    db.expire_all()
    assert db.get(User, user_id) is None
    assert db.query(Chart).filter(Chart.user_id == user_id).count() == 0
    assert db.query(Entry).count() == 0
    # Los datos del otro usuario siguen ahí
    assert db.query(Chart).filter(Chart.user_id == other_user_id).count() == 1
