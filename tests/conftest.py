"""Общие фикстуры: фиксированные часы, хранилище, сервисы и тестовые отправители"""

from datetime import datetime, timedelta
from typing import List

import pytest

from core.models import Goal
from services.deadline_monitor import DeadlineMonitor
from services.habit_service import HabitService
from services.notifications import DependencyFailure, NotificationSender, PushMessage
from services.nudge_service import NudgeService
from services.store import DocumentStore
from utils.datetime_utils import UTC

# Понедельник
MONDAY_10AM = datetime(2025, 1, 6, 10, 0, tzinfo=UTC)

class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

    def set(self, now: datetime):
        self.now = now

class RecordingSender(NotificationSender):
    def __init__(self):
        self.sent: List[PushMessage] = []

    async def send(self, message: PushMessage) -> bool:
        self.sent.append(message)
        return True

class FailingSender(NotificationSender):
    def __init__(self):
        self.attempts = 0

    async def send(self, message: PushMessage) -> bool:
        self.attempts += 1
        raise DependencyFailure("push service unavailable")

@pytest.fixture
def clock():
    return FakeClock(MONDAY_10AM)

@pytest.fixture
def store():
    return DocumentStore()

@pytest.fixture
def sender():
    return RecordingSender()

@pytest.fixture
def failing_sender():
    return FailingSender()

@pytest.fixture
def habit_service(store, clock):
    return HabitService(store, clock=clock)

@pytest.fixture
def nudge_service(store, sender, clock):
    return NudgeService(store, sender, clock=clock)

@pytest.fixture
def monitor(habit_service, store, sender):
    return DeadlineMonitor(habit_service, store, sender, interval_minutes=15, shame_after_hours=24)

@pytest.fixture
def make_goal():
    def _make_goal(**overrides) -> Goal:
        values = {
            'goal_id': 'goal-1',
            'owner_id': 'alice',
            'description': 'Read 10 pages',
            'created_at': MONDAY_10AM,
        }
        values.update(overrides)
        return Goal(**values)
    return _make_goal
