import asyncio
from unittest.mock import AsyncMock

from fastapi import BackgroundTasks

from brandcollab.admin.models import ProfileType
from brandcollab.admin.review_service import profile_review_service
from brandcollab.notifications.dispatch import dispatch
from brandcollab.storage.db import db


def test_background_send_waits_for_response():
    send = AsyncMock()
    tasks = BackgroundTasks()

    asyncio.run(dispatch(tasks, send, "+919876500001", name="Asha"))
    assert send.await_count == 0

    asyncio.run(tasks())
    send.assert_awaited_once_with("+919876500001", name="Asha")


def test_failed_send_is_logged_not_raised():
    send = AsyncMock(side_effect=RuntimeError("provider down"))
    tasks = BackgroundTasks()

    asyncio.run(dispatch(None, send, 1))
    asyncio.run(dispatch(tasks, send, 2))
    asyncio.run(tasks())

    assert send.await_count == 2


def test_approval_notifications_are_queued(make_influencer, make_admin, notifications):
    influencer_id = make_influencer()
    with db.session() as session:
        review_id = profile_review_service.submit(session, influencer_id, ProfileType.INFLUENCER)
    tasks = BackgroundTasks()

    result = asyncio.run(profile_review_service.approve_profile(review_id, make_admin(), background=tasks))

    assert result["review"]["status"] == "approved"
    assert notifications["push"].await_count == 0
    assert notifications["whatsapp"].await_count == 0

    asyncio.run(tasks())
    assert notifications["push"].await_count == 1
    assert notifications["whatsapp"].await_count == 1
