"""Integration tests for the notification inbox"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from digital_wallet.domain.exceptions import ErrorKind
from digital_wallet.domain.models import NotificationType
from digital_wallet.infrastructure.database.repositories import NotificationRepository
from digital_wallet.infrastructure.observability.metrics import notification_failure_counter
from digital_wallet.services.notifications import NotificationService, OutgoingNotification


@pytest.fixture
def inbox(session_factory) -> NotificationService:
    return NotificationService(session_factory)


def test_notify_and_list(session_factory, create_user, notifier, inbox):
    account = create_user()

    assert notifier.notify(account.user_id, "Hello", "First", NotificationType.SYSTEM)

    page = inbox.list_for_user(account.caller).data
    assert page.total_count == 1
    assert page.items[0].title == "Hello"
    assert page.items[0].type == NotificationType.SYSTEM.value
    assert not page.items[0].is_read


def test_notify_all_writes_every_notification(session_factory, create_user, notifier, inbox):
    alice = create_user()
    bob = create_user()

    notifier.notify_all([OutgoingNotification(alice.user_id, "A", "a"), OutgoingNotification(bob.user_id, "B", "b")])

    assert [n.title for n in inbox.list_for_user(alice.caller).data.items] == ["A"]
    assert [n.title for n in inbox.list_for_user(bob.caller).data.items] == ["B"]


def test_unread_count_and_mark_as_read(session_factory, create_user, notifier, inbox):
    account = create_user()
    notifier.notify(account.user_id, "One", "1")
    notifier.notify(account.user_id, "Two", "2")
    assert inbox.unread_count(account.caller).data == 2

    first = inbox.list_for_user(account.caller).data.items[0]
    result = inbox.mark_as_read(account.caller, first.id)

    assert result.is_success
    assert result.message == "Notification marked as read"
    assert inbox.unread_count(account.caller).data == 1


def test_cannot_mark_someone_elses_notification(session_factory, create_user, notifier, inbox):
    owner = create_user()
    other = create_user()
    notifier.notify(owner.user_id, "Private", "x")
    notification = inbox.list_for_user(owner.caller).data.items[0]

    assert inbox.mark_as_read(other.caller, notification.id).error == ErrorKind.NOT_FOUND
    assert inbox.mark_as_read(owner.caller, uuid.uuid4()).error == ErrorKind.NOT_FOUND
    assert inbox.unread_count(owner.caller).data == 1


def test_delivery_failure_is_swallowed_and_counted(session_factory, create_user, notifier, inbox):
    account = create_user()
    before = notification_failure_counter._value.get()

    with patch.object(NotificationRepository, "add", side_effect=SQLAlchemyError("down")):
        delivered = notifier.notify(account.user_id, "Lost", "x")

    assert delivered is False
    assert notification_failure_counter._value.get() == before + 1
    assert inbox.unread_count(account.caller).data == 0


def test_inbox_paging_validation(session_factory, create_user, inbox):
    account = create_user()

    assert inbox.list_for_user(account.caller, page=0).error == ErrorKind.VALIDATION


def test_any_delivery_error_is_swallowed(session_factory, create_user, notifier, inbox):
    """Test a non-database error while storing notifications is counted instead of raised"""
    account = create_user()
    before = notification_failure_counter._value.get()

    with patch.object(NotificationRepository, "add", side_effect=RuntimeError("encoder blew up")):
        delivered = notifier.notify_all(
            [OutgoingNotification(account.user_id, "A", "a"), OutgoingNotification(account.user_id, "B", "b")]
        )

    assert delivered is False
    assert notification_failure_counter._value.get() == before + 2
    assert inbox.unread_count(account.caller).data == 0
