from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from models import User
from schemas import UserCreate


def _user(store, email="asha@example.com", password="s3cret!", phone="9876543210"):
    return store.create_user(UserCreate(email=email, password=password, name="Asha", phone=phone))


def test_create_user_hashes_password(store):
    user = _user(store)
    assert user.id
    assert user.password != "s3cret!"
    assert user.role == "guest"
    assert "password" not in user.to_dict()


def test_duplicate_email_rejected_by_store(store):
    _user(store)
    with pytest.raises(IntegrityError):
        _user(store, phone="9999999999")
    # session usable again after the rollback
    assert User.query.count() == 1


def test_lookup_by_email_and_phone_is_exact(store):
    user = _user(store)
    assert store.get_user_by_email("asha@example.com").id == user.id
    assert store.get_user_by_email("ASHA@example.com") is None
    assert store.get_user_by_phone("9876543210").id == user.id
    assert store.get_user_by_phone("987654321") is None


def test_authenticate_user(store):
    user = _user(store)
    assert store.authenticate_user("asha@example.com", "s3cret!").id == user.id
    assert store.authenticate_user("asha@example.com", "wrong") is None


def test_authenticate_unknown_user_returns_none(store):
    assert store.authenticate_user("nouser@x.com", "anything") is None


def test_otp_flow(store):
    user = _user(store)
    expiry = datetime(2025, 3, 14, 10, 40)

    user = store.update_user_otp(user.id, "123456", expiry)
    assert (user.otp_code, user.otp_expiry, user.otp_verified) == ("123456", expiry, False)

    assert store.update_user_otp_verified(user.id, True).otp_verified is True

    store.update_user_password(user.id, "n3w-pass")
    assert store.authenticate_user("asha@example.com", "n3w-pass") is not None
    assert store.authenticate_user("asha@example.com", "s3cret!") is None

    user = store.clear_user_otp(user.id)
    assert user.otp_code is None
    assert user.otp_expiry is None
    assert user.otp_verified is False


def test_otp_expiry_is_not_enforced_by_storage(store):
    user = _user(store)
    past = datetime(2000, 1, 1) - timedelta(minutes=1)
    assert store.update_user_otp(user.id, "654321", past).otp_code == "654321"


def test_updates_on_missing_user_return_none(store):
    assert store.update_user_otp("missing", "123456", datetime(2025, 1, 1)) is None
    assert store.update_user_password("missing", "whatever") is None
    assert store.clear_user_otp("missing") is None


def test_stripe_info(store):
    user = _user(store)
    store.update_stripe_customer_id(user.id, "cus_1")
    user = store.update_user_stripe_info(user.id, "cus_2", "sub_9")
    assert (user.stripe_customer_id, user.stripe_subscription_id) == ("cus_2", "sub_9")


def test_login_with_mixed_case_domain_as_typed_at_signup(store):
    user = _user(store, email="Asha@Example.COM")
    assert store.get_user_by_email("Asha@Example.COM").id == user.id
    assert store.authenticate_user("Asha@Example.COM", "s3cret!").id == user.id
    assert store.authenticate_user("Asha@example.com", "s3cret!").id == user.id
    # local part stays case-sensitive
    assert store.authenticate_user("asha@example.com", "s3cret!") is None


def test_lookup_key_that_is_not_an_email_is_used_as_typed(store):
    _user(store)
    assert store.get_user_by_email("9876543210") is None
