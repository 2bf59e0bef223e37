"""Integration tests for OTP issuance and consumption"""

from datetime import timedelta

import pytest

from digital_wallet.domain.exceptions import InvalidOtpError, ValidationError
from digital_wallet.domain.models import OtpPurpose
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.otp import OtpEngine
from digital_wallet.utils.date_utils import utc_now


class FakeClock:
    def __init__(self):
        self.now = utc_now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _consume(engine: OtpEngine, session_factory, user_id, code, purpose=OtpPurpose.TRANSFER):
    with UnitOfWork(session_factory) as uow:
        engine.consume(uow, user_id, code, purpose)
        uow.commit()


def test_issued_code_verifies(session_factory, create_user, otp_engine):
    account = create_user()
    code = otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    assert len(code) == 6
    assert otp_engine.verify(account.user_id, code, OtpPurpose.TRANSFER)
    # verify() is read-only
    assert otp_engine.verify(account.user_id, code, OtpPurpose.TRANSFER)


def test_code_is_single_use(session_factory, create_user, otp_engine):
    """Test a consumed code cannot authorize a second operation"""
    account = create_user()
    code = otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    _consume(otp_engine, session_factory, account.user_id, code)

    with pytest.raises(InvalidOtpError):
        _consume(otp_engine, session_factory, account.user_id, code)
    assert not otp_engine.verify(account.user_id, code, OtpPurpose.TRANSFER)


def test_expired_code_rejected(session_factory, create_user):
    """Test a never-used code past its 5 minute lifetime is rejected"""
    clock = FakeClock()
    engine = OtpEngine(session_factory, clock=clock)
    account = create_user()
    code = engine.issue(account.user_id, OtpPurpose.TRANSFER)

    clock.advance(minutes=4, seconds=59)
    assert engine.verify(account.user_id, code, OtpPurpose.TRANSFER)

    clock.advance(seconds=2)
    assert not engine.verify(account.user_id, code, OtpPurpose.TRANSFER)
    with pytest.raises(InvalidOtpError):
        _consume(engine, session_factory, account.user_id, code)


def test_code_bound_to_purpose_and_user(session_factory, create_user, otp_engine):
    owner = create_user()
    other = create_user()
    code = otp_engine.issue(owner.user_id, OtpPurpose.LOGIN)

    with pytest.raises(InvalidOtpError):
        _consume(otp_engine, session_factory, owner.user_id, code, OtpPurpose.TRANSFER)
    with pytest.raises(InvalidOtpError):
        _consume(otp_engine, session_factory, other.user_id, code, OtpPurpose.LOGIN)

    _consume(otp_engine, session_factory, owner.user_id, code, OtpPurpose.LOGIN)


def test_new_code_supersedes_previous(session_factory, create_user, otp_engine):
    account = create_user()
    first = otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)
    second = otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    if first != second:
        assert not otp_engine.verify(account.user_id, first, OtpPurpose.TRANSFER)
    assert otp_engine.verify(account.user_id, second, OtpPurpose.TRANSFER)


def test_supersede_leaves_other_purposes_alone(session_factory, create_user, otp_engine):
    account = create_user()
    login_code = otp_engine.issue(account.user_id, OtpPurpose.LOGIN)
    otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    assert otp_engine.verify(account.user_id, login_code, OtpPurpose.LOGIN)


def test_malformed_code_is_validation_error(session_factory, create_user, otp_engine):
    account = create_user()

    with pytest.raises(ValidationError):
        _consume(otp_engine, session_factory, account.user_id, "12ab")
    assert not otp_engine.verify(account.user_id, "12ab", OtpPurpose.TRANSFER)


def test_consumption_rolls_back_with_unit_of_work(session_factory, create_user, otp_engine):
    """Test a code consumed inside a failed unit of work stays usable"""
    account = create_user()
    code = otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    with pytest.raises(RuntimeError):
        with UnitOfWork(session_factory) as uow:
            otp_engine.consume(uow, account.user_id, code, OtpPurpose.TRANSFER)
            raise RuntimeError("later guard failed")

    assert otp_engine.verify(account.user_id, code, OtpPurpose.TRANSFER)
