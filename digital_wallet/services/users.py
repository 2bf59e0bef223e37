"""Identity lookups"""

import uuid

from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import ForbiddenError, NotFoundError, ValidationError
from digital_wallet.domain.models import Caller, UserStatus, UserView
from digital_wallet.infrastructure.database.models import User
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import service_operation
from digital_wallet.services.views import user_view


class UserService:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @service_operation("Get profile")
    def get_me(self, caller: Caller) -> UserView:
        return self._lookup(lambda uow: uow.users.get_by_id(caller.user_id))

    @service_operation("Get user")
    def get_by_id(self, user_id: uuid.UUID) -> UserView:
        return self._lookup(lambda uow: uow.users.get_by_id(user_id))

    @service_operation("Get user by email")
    def get_by_email(self, email: str) -> UserView:
        if not email:
            raise ValidationError("Email is required")
        return self._lookup(lambda uow: uow.users.get_by_email(email.strip()))

    @service_operation("Get user by phone")
    def get_by_phone(self, phone: str) -> UserView:
        if not phone:
            raise ValidationError("Phone is required")
        return self._lookup(lambda uow: uow.users.get_by_phone(phone.strip()))

    @service_operation("Get user by email or phone")
    def get_by_email_or_phone(self, identifier: str) -> UserView:
        if not identifier:
            raise ValidationError("Email or phone is required")
        return self._lookup(lambda uow: uow.users.get_by_email_or_phone(identifier))

    def _lookup(self, find) -> UserView:
        with UnitOfWork(self.session_factory) as uow:
            user = find(uow)
            if user is None:
                raise NotFoundError("User not found")
            return user_view(user)


def active_user(uow: UnitOfWork, user_id: uuid.UUID) -> User:
    """
    Load the user behind a money-moving call.

    Raises:
        ForbiddenError: user is missing or not Active
    """
    user = uow.users.get_by_id(user_id)
    if user is None or user.status != UserStatus.ACTIVE.value:
        raise ForbiddenError("Account is suspended")
    return user
