"""Notification store and persist-then-push fan-out."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from krisefikser.core.errors import DeliveryError, NotFoundError
from krisefikser.db.enums import NotificationType
from krisefikser.db.models import Notification
from krisefikser.services import household_service, notification_service


def test_notifications_listed_newest_first(db, make_user):
    user = make_user()
    base = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    for offset, text in [(0, "first"), (2, "third"), (1, "second")]:
        notification_service.create_notification(
            db, user.id, NotificationType.INFO, text, timestamp=base + timedelta(minutes=offset)
        )

    messages = [n.message for n in notification_service.get_notifications(db, user.id)]

    assert messages == ["third", "second", "first"]


def test_unread_filter_and_count(db, make_user):
    user = make_user()
    first = notification_service.create_notification(db, user.id, NotificationType.INFO, "a")
    notification_service.create_notification(db, user.id, NotificationType.INFO, "b")

    notification_service.mark_read(db, first.id, user.id)

    assert notification_service.get_unread_count(db, user.id) == 1
    unread = notification_service.get_notifications(db, user.id, unread_only=True)
    assert [n.message for n in unread] == ["b"]


def test_mark_read_is_scoped_to_owner(db, make_user):
    owner, stranger = make_user(), make_user()
    notification = notification_service.create_notification(
        db, owner.id, NotificationType.INFO, "private"
    )

    with pytest.raises(NotFoundError, match="Notification not found"):
        notification_service.mark_read(db, notification.id, stranger.id)
    with pytest.raises(NotFoundError):
        notification_service.mark_read(db, uuid.uuid4(), owner.id)


def test_mark_all_read(db, make_user):
    user = make_user()
    for i in range(3):
        notification_service.create_notification(db, user.id, NotificationType.INFO, str(i))

    assert notification_service.mark_all_read(db, user.id) == 3
    assert notification_service.get_unread_count(db, user.id) == 0


def test_notify_users_persists_then_pushes_each_once(db, make_user, pushed):
    a, b = make_user(), make_user()

    notifications = notification_service.notify_users(
        db, [a.id, b.id, a.id], NotificationType.INCIDENT, "alert"
    )

    assert len(notifications) == 2
    assert db.query(Notification).count() == 2
    assert sorted(str(user_id) for _, user_id, _ in pushed) == sorted([str(a.id), str(b.id)])
    assert all(payload["type"] == "notification" for _, _, payload in pushed)
    assert all(payload["data"]["message"] == "alert" for _, _, payload in pushed)


def test_notify_users_with_no_recipients(db, pushed):
    assert notification_service.notify_users(db, [], NotificationType.INFO, "nobody") == []
    assert pushed == []


def test_push_failure_is_logged_and_does_not_abort(db, make_user, monkeypatch, caplog):
    failing, healthy = make_user(), make_user()
    attempted = []

    async def _send_to_user(user_id, message):
        attempted.append(user_id)
        if user_id == failing.id:
            raise DeliveryError("socket gone")
        return 1

    monkeypatch.setattr(notification_service.manager, "send_to_user", _send_to_user)

    with caplog.at_level(logging.WARNING, logger="krisefikser.services.notification_service"):
        notifications = notification_service.notify_users(
            db, [failing.id, healthy.id], NotificationType.INCIDENT, "alert"
        )

    assert len(notifications) == 2
    assert set(attempted) == {failing.id, healthy.id}
    assert db.query(Notification).filter(Notification.user_id == failing.id).count() == 1
    assert "Push delivery failed" in caplog.text


def test_push_to_user_swallows_unexpected_errors(monkeypatch):
    async def _explode(user_id, message):
        raise OSError("network down")

    monkeypatch.setattr(notification_service.manager, "send_to_user", _explode)

    assert notification_service.push_to_user(uuid.uuid4(), {"type": "notification"}) is False


def test_notify_household_reaches_every_member(db, household, make_user, pushed):
    member = make_user()
    household_service.add_user_to_household(db, household.id, member.id)
    pushed.clear()

    notifications = notification_service.notify_household(
        db, household.id, NotificationType.STOCK_CONTROL, "check your water"
    )

    assert {n.user_id for n in notifications} == {household.owner_id, member.id}
    assert len(pushed) == 2
