"""ORM row -> read model conversion"""

from typing import Dict

from digital_wallet.domain.models import (
    BillerView,
    BillPaymentView,
    MoneyRequestView,
    NotificationView,
    TransactionView,
    TransferView,
    UserView,
    WalletView,
)
from digital_wallet.infrastructure.database.models import (
    Biller,
    BillPayment,
    MoneyRequest,
    Notification,
    Transaction,
    Transfer,
    User,
    Wallet,
)


def wallet_view(wallet: Wallet) -> WalletView:
    return WalletView(
        id=wallet.id,
        user_id=wallet.user_id,
        currency=wallet.currency_code,
        balance_cents=wallet.balance_cents,
        daily_limit_cents=wallet.daily_limit_cents,
        monthly_limit_cents=wallet.monthly_limit_cents,
        created_at=wallet.created_at,
    )


def transaction_view(transaction: Transaction) -> TransactionView:
    return TransactionView(
        id=transaction.id,
        wallet_id=transaction.wallet_id,
        type=transaction.type,
        amount_cents=transaction.amount_cents,
        currency=transaction.currency_code,
        status=transaction.status,
        description=transaction.description,
        reference=transaction.reference,
        created_at=transaction.created_at,
    )


def transfer_view(transfer: Transfer) -> TransferView:
    return TransferView(
        id=transfer.id,
        sender_wallet_id=transfer.sender_wallet_id,
        receiver_wallet_id=transfer.receiver_wallet_id,
        amount_cents=transfer.amount_cents,
        currency=transfer.currency_code,
        status=transfer.status,
        description=transfer.description,
        created_at=transfer.created_at,
    )


def biller_view(biller: Biller) -> BillerView:
    return BillerView(id=biller.id, name=biller.name, category=biller.category)


def bill_payment_view(payment: BillPayment, biller_names: Dict) -> BillPaymentView:
    return BillPaymentView(
        id=payment.id,
        wallet_id=payment.wallet_id,
        biller_id=payment.biller_id,
        biller_name=biller_names.get(payment.biller_id, ""),
        amount_cents=payment.amount_cents,
        currency=payment.currency_code,
        status=payment.status,
        receipt_path=payment.receipt_path,
        created_at=payment.created_at,
    )


def money_request_view(money_request: MoneyRequest) -> MoneyRequestView:
    return MoneyRequestView(
        id=money_request.id,
        from_user_id=money_request.from_user_id,
        to_user_id=money_request.to_user_id,
        amount_cents=money_request.amount_cents,
        currency=money_request.currency_code,
        status=money_request.status,
        created_at=money_request.created_at,
        responded_at=money_request.responded_at,
    )


def user_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone=user.phone,
        kyc_level=user.kyc_level,
        status=user.status,
        role=user.role,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


def notification_view(notification: Notification) -> NotificationView:
    return NotificationView(
        id=notification.id,
        title=notification.title,
        body=notification.body,
        type=notification.type,
        is_read=notification.is_read,
        created_at=notification.created_at,
    )
