"""Тесты кулдауна напоминаний и сервиса напоминаний"""

import asyncio
from datetime import datetime, timedelta

import pytest

from core.models import Nudge, ValidationError
from core.nudges import (
    NUDGE_COOLDOWN, RateLimitError, SelfActionError, SendNudgeInput,
    collect_active_cooldowns, remaining_cooldown_minutes, validate_nudge_input
)
from services.nudge_service import NUDGES, USERS, NudgeService
from utils.datetime_utils import UTC

NOW = datetime(2025, 1, 6, 10, 0, tzinfo=UTC)

def nudge_input(**overrides):
    values = {
        'sender_id': 'bob',
        'sender_name': 'Bob',
        'receiver_id': 'alice',
        'goal_id': 'goal-1',
        'goal_description': 'Read 10 pages',
    }
    values.update(overrides)
    return SendNudgeInput(**values)

# =============================================================================
# ПРАВИЛА
# =============================================================================

class TestValidation:

    def test_valid_input(self):
        validate_nudge_input(nudge_input())

    def test_self_nudge_rejected_first(self):
        with pytest.raises(SelfActionError):
            validate_nudge_input(nudge_input(receiver_id="bob", goal_id="", goal_description=""))

    @pytest.mark.parametrize("field_name", ["sender_id", "sender_name", "receiver_id", "goal_id", "goal_description"])
    def test_missing_field(self, field_name):
        with pytest.raises(ValidationError, match=field_name):
            validate_nudge_input(nudge_input(**{field_name: "  "}))

    def test_empty_sender_and_receiver_is_validation_error(self):
        with pytest.raises(ValidationError):
            validate_nudge_input(nudge_input(sender_id="", receiver_id=""))

class TestCooldownMath:

    def test_no_cooldown(self):
        assert remaining_cooldown_minutes(None, NOW) == 0

    def test_sent_ten_minutes_ago(self):
        cooldown_until = NOW - timedelta(minutes=10) + NUDGE_COOLDOWN
        assert 49 <= remaining_cooldown_minutes(cooldown_until, NOW) <= 51

    def test_rounds_up(self):
        assert remaining_cooldown_minutes(NOW + timedelta(seconds=30), NOW) == 1

    def test_expired(self):
        assert remaining_cooldown_minutes(NOW, NOW) == 0
        assert remaining_cooldown_minutes(NOW - timedelta(minutes=5), NOW) == 0

    def test_collect_keeps_latest_active(self):
        def make(nudge_id, goal_id, minutes):
            sent = NOW + timedelta(minutes=minutes) - NUDGE_COOLDOWN
            return Nudge(nudge_id, "bob", "Bob", "alice", goal_id, "Read", sent, sent + NUDGE_COOLDOWN, sent)

        cooldowns = collect_active_cooldowns([
            make("1", "goal-1", 20),
            make("2", "goal-1", 50),
            make("3", "goal-2", -5),
        ], NOW)
        assert cooldowns == {"goal-1": NOW + timedelta(minutes=50)}

# =============================================================================
# СЕРВИС
# =============================================================================

class TestSendNudge:

    async def test_creates_nudge_with_cooldown(self, nudge_service, store, clock):
        nudge_id = await nudge_service.send_nudge(nudge_input())
        document = store.get(NUDGES, nudge_id)
        assert document['sender_id'] == "bob"
        assert document['cooldown_until'] == (clock() + timedelta(minutes=60)).isoformat()
        assert await nudge_service.get_remaining_cooldown_minutes("bob", "goal-1") == 60
        assert not await nudge_service.can_send_nudge("bob", "goal-1")

    async def test_second_nudge_rate_limited(self, nudge_service, clock):
        await nudge_service.send_nudge(nudge_input())
        clock.advance(minutes=10)
        with pytest.raises(RateLimitError) as error:
            await nudge_service.send_nudge(nudge_input())
        assert error.value.remaining_minutes == 50
        assert "50" in str(error.value)

    async def test_cooldown_expires(self, nudge_service, clock):
        await nudge_service.send_nudge(nudge_input())
        clock.advance(minutes=60)
        assert await nudge_service.can_send_nudge("bob", "goal-1")
        assert await nudge_service.send_nudge(nudge_input())

    async def test_cooldown_is_per_goal(self, nudge_service):
        await nudge_service.send_nudge(nudge_input())
        assert await nudge_service.can_send_nudge("bob", "goal-2")
        assert await nudge_service.can_send_nudge("eve", "goal-1")

    async def test_self_nudge_creates_nothing(self, nudge_service, store):
        with pytest.raises(SelfActionError):
            await nudge_service.send_nudge(nudge_input(receiver_id="bob"))
        assert store.count(NUDGES) == 0

    async def test_concurrent_sends_create_one_nudge(self, nudge_service, store):
        results = await asyncio.gather(
            nudge_service.send_nudge(nudge_input()),
            nudge_service.send_nudge(nudge_input()),
            return_exceptions=True
        )
        assert sum(isinstance(result, RateLimitError) for result in results) == 1
        assert store.count(NUDGES) == 1

    async def test_cooldowns_map(self, nudge_service, clock):
        await nudge_service.send_nudge(nudge_input())
        await nudge_service.send_nudge(nudge_input(goal_id="goal-2"))
        cooldowns = await nudge_service.get_nudge_cooldowns("bob")
        assert cooldowns == {
            "goal-1": clock() + timedelta(minutes=60),
            "goal-2": clock() + timedelta(minutes=60),
        }
        assert await nudge_service.get_nudge_cooldowns("") == {}

class TestDelivery:

    async def test_push_sent_to_receiver(self, nudge_service, store, sender):
        store.put(USERS, "alice", {'user_id': 'alice', 'push_token': 'chat-42'})
        await nudge_service.send_nudge(nudge_input())
        [message] = sender.sent
        assert message.token == "chat-42"
        assert message.title == "Nudge from a Friend!"
        assert message.body == "Bob is nudging you about: Read 10 pages"
        assert message.data['goal_id'] == "goal-1"

    async def test_no_token_no_push(self, nudge_service, store, sender):
        store.put(USERS, "alice", {'user_id': 'alice'})
        await nudge_service.send_nudge(nudge_input())
        assert sender.sent == []

    async def test_disabled_notifications(self, nudge_service, store, sender):
        store.put(USERS, "alice", {'user_id': 'alice', 'push_token': 'chat-42', 'notifications_enabled': False})
        await nudge_service.send_nudge(nudge_input())
        assert sender.sent == []

    async def test_delivery_failure_keeps_nudge(self, store, failing_sender, clock):
        service = NudgeService(store, failing_sender, clock=clock)
        store.put(USERS, "alice", {'user_id': 'alice', 'push_token': 'chat-42'})
        nudge_id = await service.send_nudge(nudge_input())
        assert failing_sender.attempts == 1
        assert store.get(NUDGES, nudge_id) is not None
        assert await service.get_remaining_cooldown_minutes("bob", "goal-1") == 60

class TestHistory:

    async def test_sent_and_received(self, nudge_service, clock):
        await nudge_service.send_nudge(nudge_input())
        clock.advance(minutes=5)
        await nudge_service.send_nudge(nudge_input(goal_id="goal-2"))

        sent = await nudge_service.get_nudge_history("bob", "sent")
        assert [nudge.goal_id for nudge in sent] == ["goal-2", "goal-1"]
        received = await nudge_service.get_nudge_history("alice", "received")
        assert len(received) == 2
        assert await nudge_service.get_nudge_history("alice", "sent") == []

    async def test_old_nudges_excluded(self, nudge_service, clock):
        await nudge_service.send_nudge(nudge_input())
        clock.advance(days=8)
        assert await nudge_service.get_nudge_history("bob", "sent", days=7) == []

    async def test_invalid_arguments(self, nudge_service):
        with pytest.raises(ValueError):
            await nudge_service.get_nudge_history("bob", "sideways")
        with pytest.raises(ValueError):
            await nudge_service.get_nudge_history("bob", "sent", days=0)
