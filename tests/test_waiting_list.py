from datetime import timedelta

import pytest

from conftest import make_ctx, make_post
from gclub.core.exceptions import (
    AuthorizationError, GameFullError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from gclub.models.game_post import GamePostStatus, WaitingParticipant, WaitingStatus
from gclub.models.notification import Notification, NotificationReceipt
from gclub.services.game_post_service import game_post_service
from gclub.services.notification_service import NotificationType
from gclub.services.status_service import status_service
from gclub.services.waiting_list_service import utcnow, waiting_list_service


def fill(db, post, *user_ids):
    for user_id in user_ids:
        game_post_service.join(db, post.id, user_id)
    db.refresh(post)
    return post


def entry_of(db, post_id, user_id):
    return (
        db.query(WaitingParticipant)
        .filter(WaitingParticipant.game_post_id == post_id, WaitingParticipant.user_id == user_id)
        .order_by(WaitingParticipant.id.desc())
        .first()
    )


def participant_ids(db, post):
    db.refresh(post)
    return {p.user_id for p in post.participants}


def test_author_is_leader_and_post_opens(members):
    db = members
    post = make_post(db, max_players=3)
    assert post.status == GamePostStatus.OPEN
    assert [(p.user_id, p.is_leader) for p in post.participants] == [("host", True)]


def test_join_until_full(members):
    db = members
    post = fill(db, make_post(db, max_players=3), "alice", "bob")
    assert post.status == GamePostStatus.FULL
    assert post.participant_count == 3

    with pytest.raises(GameFullError):
        game_post_service.join(db, post.id, "carol")


def test_join_rejects_author_and_duplicates(members):
    db = members
    post = make_post(db, max_players=4)
    game_post_service.join(db, post.id, "alice")

    with pytest.raises(ValidationError):
        game_post_service.join(db, post.id, "host")
    with pytest.raises(ResourceConflictError):
        game_post_service.join(db, post.id, "alice")


def test_join_cancels_own_waiting_entry(members):
    db = members
    post = make_post(db, max_players=3)
    db.add(WaitingParticipant(game_post_id=post.id, user_id="bob", status=WaitingStatus.WAITING))
    db.add(WaitingParticipant(game_post_id=post.id, user_id="carol", status=WaitingStatus.WAITING))
    db.commit()

    game_post_service.join(db, post.id, "bob")

    db.expire_all()
    assert entry_of(db, post.id, "bob").status == WaitingStatus.CANCELED
    assert entry_of(db, post.id, "carol").status == WaitingStatus.WAITING
    assert participant_ids(db, post) == {"host", "bob"}


def test_enqueue_waits_only_on_full_posts(members):
    db = members
    post = make_post(db, max_players=3)
    with pytest.raises(ValidationError):
        waiting_list_service.enqueue(db, post.id, "carol")

    fill(db, post, "alice", "bob")
    entry = waiting_list_service.enqueue(db, post.id, "carol")
    assert entry.status == WaitingStatus.WAITING


def test_enqueue_rejections(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")

    with pytest.raises(ValidationError):
        waiting_list_service.enqueue(db, post.id, "host")
    with pytest.raises(ResourceConflictError):
        waiting_list_service.enqueue(db, post.id, "alice")
    with pytest.raises(ResourceConflictError):
        waiting_list_service.enqueue(db, post.id, "bob")
    with pytest.raises(ResourceNotFoundError):
        waiting_list_service.enqueue(db, 9999, "bob")


@pytest.mark.parametrize("hours_later,expected", [
    (2, GamePostStatus.IN_PROGRESS),
    (10, GamePostStatus.COMPLETED),
])
def test_enqueue_rejected_once_game_started(members, hours_later, expected):
    db = members
    post = fill(db, make_post(db, max_players=2, hours_ahead=1), "alice")
    status_service.update_post_status(db, now=utcnow() + timedelta(hours=hours_later))
    db.refresh(post)
    assert post.status == expected

    with pytest.raises(ValidationError):
        waiting_list_service.enqueue(db, post.id, "bob")
    assert entry_of(db, post.id, "bob") is None


def test_future_available_time_starts_time_waiting(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    later = waiting_list_service.enqueue(db, post.id, "bob", utcnow() + timedelta(hours=2))
    now = waiting_list_service.enqueue(db, post.id, "carol", utcnow() - timedelta(minutes=1))
    assert later.status == WaitingStatus.TIME_WAITING
    assert now.status == WaitingStatus.WAITING


def test_leave_promotes_head_of_queue_and_post_stays_full(members):
    db = members
    post = fill(db, make_post(db, max_players=5), "alice", "bob", "carol", "dave")
    assert post.status == GamePostStatus.FULL
    waiting_list_service.enqueue(db, post.id, "erin")

    promoted = game_post_service.leave(db, post.id, "alice")

    assert [w.user_id for w in promoted] == ["erin"]
    db.refresh(post)
    assert post.status == GamePostStatus.FULL
    assert post.participant_count == 5
    assert participant_ids(db, post) == {"host", "bob", "carol", "dave", "erin"}
    assert entry_of(db, post.id, "erin").status == WaitingStatus.PROMOTED


def test_promotion_is_fifo(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    for user_id in ("bob", "carol", "dave"):
        waiting_list_service.enqueue(db, post.id, user_id)

    game_post_service.leave(db, post.id, "alice")

    assert entry_of(db, post.id, "bob").status == WaitingStatus.PROMOTED
    assert entry_of(db, post.id, "carol").status == WaitingStatus.WAITING
    assert entry_of(db, post.id, "dave").status == WaitingStatus.WAITING


def test_leave_without_queue_reopens_post(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    assert game_post_service.leave(db, post.id, "alice") == []
    db.refresh(post)
    assert post.status == GamePostStatus.OPEN


def test_leave_rejections(members):
    db = members
    post = fill(db, make_post(db, max_players=3), "alice")
    with pytest.raises(ResourceNotFoundError):
        game_post_service.leave(db, post.id, "bob")
    with pytest.raises(AuthorizationError):
        game_post_service.leave(db, post.id, "host")


def test_time_waiting_entry_keeps_its_place(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob", utcnow() + timedelta(hours=1))
    waiting_list_service.enqueue(db, post.id, "carol")

    game_post_service.leave(db, post.id, "alice")

    assert entry_of(db, post.id, "bob").status == WaitingStatus.PROMOTED
    assert entry_of(db, post.id, "carol").status == WaitingStatus.WAITING


def test_cancel_then_cancel_again(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")

    waiting_list_service.cancel(db, post.id, "bob")
    assert entry_of(db, post.id, "bob").status == WaitingStatus.CANCELED

    with pytest.raises(ResourceNotFoundError):
        waiting_list_service.cancel(db, post.id, "bob")


def test_canceled_user_can_queue_again(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")
    waiting_list_service.cancel(db, post.id, "bob")

    entry = waiting_list_service.enqueue(db, post.id, "bob")
    assert entry.status == WaitingStatus.WAITING
    statuses = sorted(
        w.status.value for w in db.query(WaitingParticipant).filter(WaitingParticipant.user_id == "bob")
    )
    assert statuses == ["CANCELED", "WAITING"]


def test_canceled_entries_are_skipped_by_promotion(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")
    waiting_list_service.enqueue(db, post.id, "carol")
    waiting_list_service.cancel(db, post.id, "bob")

    promoted = game_post_service.leave(db, post.id, "alice")
    assert [w.user_id for w in promoted] == ["carol"]


def test_capacity_increase_promotes_waiting(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")
    waiting_list_service.enqueue(db, post.id, "carol")
    waiting_list_service.enqueue(db, post.id, "dave")

    post = game_post_service.update_post(db, make_ctx(db, "host"), post.id, {"max_players": 4})

    assert post.status == GamePostStatus.FULL
    assert participant_ids(db, post) == {"host", "alice", "bob", "carol"}
    assert entry_of(db, post.id, "dave").status == WaitingStatus.WAITING


def test_capacity_cannot_drop_below_participants(members):
    db = members
    post = fill(db, make_post(db, max_players=4), "alice", "bob")
    with pytest.raises(ValidationError):
        game_post_service.update_post(db, make_ctx(db, "host"), post.id, {"max_players": 2})


def test_only_author_or_moderator_edits(members):
    db = members
    post = make_post(db, max_players=4)
    with pytest.raises(AuthorizationError):
        game_post_service.update_post(db, make_ctx(db, "alice"), post.id, {"title": "Mine now"})


def test_delete_cancels_queue_and_hides_post(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")

    game_post_service.delete_post(db, make_ctx(db, "host"), post.id)

    assert entry_of(db, post.id, "bob").status == WaitingStatus.CANCELED
    with pytest.raises(ResourceNotFoundError):
        game_post_service.get_post(db, post.id)
    with pytest.raises(ResourceNotFoundError):
        waiting_list_service.increment_view(db, post.id)


def test_close_recruitment_completes_post(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")

    post = game_post_service.close_recruitment(db, make_ctx(db, "host"), post.id)

    assert post.status == GamePostStatus.COMPLETED
    assert entry_of(db, post.id, "bob").status == WaitingStatus.CANCELED
    with pytest.raises(ValidationError):
        waiting_list_service.enqueue(db, post.id, "carol")


def test_promoted_user_is_notified(members):
    db = members
    post = fill(db, make_post(db, max_players=2), "alice")
    waiting_list_service.enqueue(db, post.id, "bob")

    game_post_service.leave(db, post.id, "alice")

    receipts = (
        db.query(NotificationReceipt)
        .join(Notification)
        .filter(NotificationReceipt.user_id == "bob", Notification.type == NotificationType.WAITING_PROMOTED)
        .all()
    )
    assert len(receipts) == 1
    assert receipts[0].notification.game_post_id == post.id


def test_view_count_increments(members):
    db = members
    post = make_post(db)
    waiting_list_service.increment_view(db, post.id)
    waiting_list_service.increment_view(db, post.id)
    db.refresh(post)
    assert post.view_count == 2
