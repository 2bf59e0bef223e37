"""Wallet management: open wallets, read balances"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import DuplicateError, ForbiddenError, ValidationError
from digital_wallet.domain.models import Balance, Caller, Capability, WalletView
from digital_wallet.domain.validators import validate_currency
from digital_wallet.infrastructure.database.models import Wallet
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.views import wallet_view

logger = logging.getLogger(__name__)


def ensure_can_view(caller: Caller, wallet: Wallet) -> None:
    """Owners see their wallets; admins see any"""
    if wallet.user_id != caller.user_id and not caller.can(Capability.VIEW_ANY_WALLET):
        raise ForbiddenError("You can only access your own wallets")


class WalletService:
    def __init__(self, session_factory: sessionmaker, ledger: Optional[WalletLedger] = None):
        self.session_factory = session_factory
        self.ledger = ledger or WalletLedger()

    @service_operation("Get wallet")
    def get_wallet(self, caller: Caller, wallet_id: uuid.UUID) -> WalletView:
        with UnitOfWork(self.session_factory) as uow:
            wallet = self.ledger.get(uow, wallet_id)
            ensure_can_view(caller, wallet)
            return wallet_view(wallet)

    @service_operation("List wallets")
    def list_user_wallets(self, caller: Caller) -> List[WalletView]:
        with UnitOfWork(self.session_factory) as uow:
            return [wallet_view(w) for w in uow.wallets.list_by_user(caller.user_id)]

    @service_operation("Create wallet", "Wallet created successfully")
    def create_wallet(self, caller: Caller, currency: Optional[str] = None) -> WalletView:
        currency = (currency or settings.default_currency).upper()
        errors = validate_currency(currency)
        if errors:
            raise ValidationError(errors=errors)

        try:
            return run_atomically(
                self.session_factory,
                lambda uow: wallet_view(self.ledger.open_wallet(uow, caller.user_id, currency)),
            )
        except IntegrityError as e:
            # Lost a race with a concurrent create; the unique constraint kept it to one row
            raise DuplicateError(f"Wallet with currency {currency} already exists") from e

    @service_operation("Get balance")
    def get_balance(self, caller: Caller, wallet_id: uuid.UUID) -> Balance:
        with UnitOfWork(self.session_factory) as uow:
            wallet = self.ledger.get(uow, wallet_id)
            ensure_can_view(caller, wallet)
            return Balance(wallet_id=wallet.id, balance_cents=wallet.balance_cents, currency=wallet.currency_code)
