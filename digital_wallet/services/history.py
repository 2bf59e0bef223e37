"""Read side of the ledger: paged transaction history and transfer listings"""

import uuid
from typing import List

from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import NotFoundError, ValidationError
from digital_wallet.domain.models import Caller, Page, TransactionView, TransferView
from digital_wallet.domain.validators import validate_paging
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import service_operation
from digital_wallet.services.views import transaction_view, transfer_view
from digital_wallet.services.wallets import ensure_can_view


class TransactionHistoryService:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @service_operation("Get transaction history")
    def get_transaction_history(
        self, caller: Caller, wallet_id: uuid.UUID, page: int = 1, page_size: int = 20
    ) -> Page[TransactionView]:
        """
        Newest-first page of a wallet's ledger entries.

        Pages past the end are empty but still carry the full total_count.
        """
        errors = validate_paging(page, page_size)
        if errors:
            raise ValidationError(errors=errors)

        with UnitOfWork(self.session_factory) as uow:
            wallet = uow.wallets.get_by_id(wallet_id)
            if wallet is None:
                raise NotFoundError("Wallet not found")
            ensure_can_view(caller, wallet)

            items, total = uow.transactions.list_by_wallet(wallet_id, page, page_size)
            return Page(
                items=[transaction_view(t) for t in items],
                total_count=total,
                page=page,
                page_size=page_size,
            )

    @service_operation("Get transaction")
    def get_transaction(self, caller: Caller, transaction_id: uuid.UUID) -> TransactionView:
        with UnitOfWork(self.session_factory) as uow:
            transaction = uow.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise NotFoundError("Transaction not found")
            ensure_can_view(caller, uow.wallets.get_by_id(transaction.wallet_id))
            return transaction_view(transaction)

    @service_operation("List transfers")
    def list_user_transfers(self, caller: Caller) -> List[TransferView]:
        """Transfers sent or received by any of the caller's wallets, newest first"""
        with UnitOfWork(self.session_factory) as uow:
            wallet_ids = [w.id for w in uow.wallets.list_by_user(caller.user_id)]
            return [transfer_view(t) for t in uow.transfers.list_by_wallets(wallet_ids)]
