"""User notifications: best-effort dispatch plus inbox queries"""

import logging
import uuid
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import NotFoundError, ValidationError
from digital_wallet.domain.models import Caller, NotificationType, NotificationView, Page
from digital_wallet.domain.validators import validate_paging
from digital_wallet.infrastructure.database.models import Notification
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.metrics import notification_failure_counter
from digital_wallet.services.base import service_operation
from digital_wallet.services.views import notification_view

logger = logging.getLogger(__name__)


@dataclass
class OutgoingNotification:
    user_id: uuid.UUID
    title: str
    body: str
    type: NotificationType = NotificationType.TRANSACTION


class NotificationDispatcher:
    """Fire-and-forget delivery; a failure here never affects the operation that triggered it"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def notify(self, user_id: uuid.UUID, title: str, body: str, type: NotificationType = NotificationType.TRANSACTION) -> bool:
        return self.notify_all([OutgoingNotification(user_id, title, body, type)])

    def notify_all(self, notifications: List[OutgoingNotification]) -> bool:
        try:
            with UnitOfWork(self.session_factory) as uow:
                for item in notifications:
                    uow.notifications.add(
                        Notification(
                            user_id=item.user_id,
                            title=item.title,
                            body=item.body,
                            type=item.type.value,
                            is_read=False,
                        )
                    )
                uow.commit()
            return True
        except Exception:
            notification_failure_counter.inc(len(notifications))
            logger.exception(
                "Notification delivery failed",
                extra={"user_ids": [str(n.user_id) for n in notifications]},
            )
            return False


class NotificationService:
    """Inbox operations for the authenticated caller"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @service_operation("List notifications")
    def list_for_user(self, caller: Caller, page: int = 1, page_size: int = 20) -> Page[NotificationView]:
        errors = validate_paging(page, page_size)
        if errors:
            raise ValidationError(errors=errors)
        with UnitOfWork(self.session_factory) as uow:
            items, total = uow.notifications.list_by_user(caller.user_id, page, page_size)
            return Page(items=[notification_view(n) for n in items], total_count=total, page=page, page_size=page_size)

    @service_operation("Mark notification as read", "Notification marked as read")
    def mark_as_read(self, caller: Caller, notification_id: uuid.UUID) -> bool:
        with UnitOfWork(self.session_factory) as uow:
            # Filtering by owner means someone else's notification looks absent
            if not uow.notifications.mark_as_read(notification_id, caller.user_id):
                raise NotFoundError("Notification not found")
            uow.commit()
        return True

    @service_operation("Count unread notifications")
    def unread_count(self, caller: Caller) -> int:
        with UnitOfWork(self.session_factory) as uow:
            return uow.notifications.unread_count(caller.user_id)
