# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tests for the event fan-out channel.
"""

import pytest

from sqlbr.events import EventChannel
from sqlbr.models import BackupArtifactType, EventKind, OperationEvent


def _event(kind: EventKind, percent: int | None = None) -> OperationEvent:
    return OperationEvent(
        kind=kind,
        operation_id="op-1",
        database_name="sales",
        artifact_type=BackupArtifactType.FULL,
        is_restore=False,
        percent=percent,
    )


async def _drain(subscription):
    return [event async for event in subscription]


@pytest.mark.asyncio
async def test_every_subscriber_gets_every_event():
    channel = EventChannel()
    first = channel.subscribe()
    second = channel.subscribe()

    channel.publish(_event(EventKind.PERCENT_COMPLETE, 10))
    channel.publish(_event(EventKind.COMPLETE))
    channel.close()

    assert len(await _drain(first)) == 2
    assert len(await _drain(second)) == 2


@pytest.mark.asyncio
async def test_subscription_filters_by_kind():
    channel = EventChannel()
    progress = channel.subscribe(EventKind.PERCENT_COMPLETE)

    channel.publish(_event(EventKind.INFORMATION))
    channel.publish(_event(EventKind.PERCENT_COMPLETE, 40))
    channel.close()

    assert [e.percent for e in await _drain(progress)] == [40]


@pytest.mark.asyncio
async def test_late_subscriber_gets_no_replay():
    channel = EventChannel()
    channel.publish(_event(EventKind.PERCENT_COMPLETE, 10))
    late = channel.subscribe()
    channel.close()

    assert await _drain(late) == []


@pytest.mark.asyncio
async def test_closed_subscription_keeps_queued_events():
    channel = EventChannel()
    subscription = channel.subscribe()
    channel.publish(_event(EventKind.PERCENT_COMPLETE, 10))

    subscription.close()
    channel.publish(_event(EventKind.PERCENT_COMPLETE, 20))

    assert [e.percent for e in await _drain(subscription)] == [10]
    assert channel.subscriber_count == 0
    assert subscription.closed


@pytest.mark.asyncio
async def test_subscribing_to_closed_channel_ends_immediately():
    channel = EventChannel()
    channel.close()
    channel.publish(_event(EventKind.COMPLETE))

    subscription = channel.subscribe()

    assert await _drain(subscription) == []
    # Iterating again stays ended
    assert await _drain(subscription) == []


@pytest.mark.asyncio
async def test_context_manager_unsubscribes():
    channel = EventChannel()

    async with channel.subscribe() as subscription:
        assert channel.subscriber_count == 1

    assert channel.subscriber_count == 0
    assert subscription.closed
