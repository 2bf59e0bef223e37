"""Back-office listings"""

from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import ForbiddenError, ValidationError
from digital_wallet.domain.models import Caller, Capability, Page, UserView, WalletView
from digital_wallet.domain.validators import validate_paging
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import service_operation
from digital_wallet.services.views import user_view, wallet_view


def _check(caller: Caller, capability: Capability, page: int, page_size: int) -> None:
    if not caller.can(capability):
        raise ForbiddenError("Admin access required")
    errors = validate_paging(page, page_size)
    if errors:
        raise ValidationError(errors=errors)


class AdminService:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @service_operation("List users")
    def list_users(self, caller: Caller, page: int = 1, page_size: int = 20) -> Page[UserView]:
        _check(caller, Capability.VIEW_ALL_USERS, page, page_size)
        with UnitOfWork(self.session_factory) as uow:
            items, total = uow.users.list_page(page, page_size)
            return Page(items=[user_view(u) for u in items], total_count=total, page=page, page_size=page_size)

    @service_operation("List wallets")
    def list_wallets(self, caller: Caller, page: int = 1, page_size: int = 20) -> Page[WalletView]:
        _check(caller, Capability.VIEW_ANY_WALLET, page, page_size)
        with UnitOfWork(self.session_factory) as uow:
            items, total = uow.wallets.list_page(page, page_size)
            return Page(items=[wallet_view(w) for w in items], total_count=total, page=page, page_size=page_size)
