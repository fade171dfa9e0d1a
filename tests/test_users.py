import pytest

from plenpilot_api.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from plenpilot_api.app.schemas.user import UserCreate, UserUpdate
from plenpilot_api.app.services.user_service import UserService


def test_first_user_becomes_admin(run, make_user):
    first = make_user("Første", role="employee")
    second = make_user("Andre", role="employee")
    assert first.role == "admin"
    assert second.role == "employee"


def test_duplicate_email_rejected(run, make_user):
    make_user("Ola")
    with pytest.raises(ValueError):
        run(UserService.create_user(UserCreate(email="ola@plenpilot.no", name="Ola", password="secret123")))


def test_authenticate(run, make_user):
    user = make_user("Kari", password="hemmelig")
    assert run(UserService.authenticate("kari@plenpilot.no", "hemmelig")).id == user.id
    assert run(UserService.authenticate("kari@plenpilot.no", "feil")) is None
    run(UserService.update_user(user.id, UserUpdate(disabled=True)))
    assert run(UserService.authenticate("kari@plenpilot.no", "hemmelig")) is None


def test_employees_and_admins(run, make_user):
    make_user("Sjef", role="admin")
    make_user("Per")
    make_user("Anne")
    assert [u.name for u in run(UserService.get_all_employees())] == ["Anne", "Per"]
    assert [u.name for u in run(UserService.get_admins())] == ["Sjef"]


def test_update_and_delete(run, make_user):
    user = make_user("Per")
    updated = run(UserService.update_user(user.id, UserUpdate(name="Per Olav", password="nytt-passord")))
    assert updated.name == "Per Olav"
    assert run(UserService.authenticate(user.email, "nytt-passord")) is not None
    run(UserService.delete_user(user.id))
    assert run(UserService.get_user_by_id(user.id)) is None
    with pytest.raises(ValueError):
        run(UserService.update_user(user.id, UserUpdate(name="x")))


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", None)


def test_token_roundtrip_and_tamper():
    token = create_access_token({"sub": "a@plenpilot.no"})
    assert decode_access_token(token)["sub"] == "a@plenpilot.no"
    assert decode_access_token(token[:-2] + "xx") is None
    assert decode_access_token(create_access_token({"sub": "a"}, expires_delta=-10)) is None
