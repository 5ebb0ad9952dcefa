"""
Периодическая проверка дедлайнов целей
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.models import Goal, GoalStatus, UserProfile
from services.habit_service import HabitService, GOALS
from services.notifications import NotificationSender, NullNotificationSender, shame_message
from services.store import DocumentStore
from services.nudge_service import USERS

logger = logging.getLogger(__name__)

class DeadlineMonitor:
    """
    Фоновая проверка всех целей

    - Переводит просроченные цели в красный статус
    - Применяет пропуски к стрикам (заморозка или сброс)
    - За каждые shame_after_hours в красном увеличивает shame_score владельца
      и уведомляет его друзей
    """

    def __init__(self, habit_service: HabitService, store: DocumentStore,
                 notification_sender: Optional[NotificationSender] = None,
                 interval_minutes: int = 15, shame_after_hours: int = 24):
        self.habit_service = habit_service
        self.store = store
        self.notification_sender = notification_sender or NullNotificationSender()
        self.interval_minutes = interval_minutes
        self.shame_after = timedelta(hours=shame_after_hours)
        self.scheduler: Optional[AsyncIOScheduler] = None

    def start(self):
        """Запуск планировщика. Требует работающий event loop"""
        if self.scheduler:
            return
        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.check_goal_deadlines,
            IntervalTrigger(minutes=self.interval_minutes),
            id='check_goal_deadlines',
            replace_existing=True
        )
        self.scheduler.start()
        logger.info(f"📅 Проверка дедлайнов запущена (каждые {self.interval_minutes} мин)")

    def shutdown(self):
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
            logger.info("🛑 Проверка дедлайнов остановлена")

    async def check_goal_deadlines(self) -> Dict[str, int]:
        """Один проход по всем целям"""
        stats = {'processed': 0, 'turned_red': 0, 'shamed': 0, 'failed': 0}
        to_notify: Dict[str, List[Dict[str, str]]] = {}

        for document in self.store.query(GOALS):
            goal_id = document['goal_id']
            try:
                before = Goal.from_dict(document)
                await self.habit_service.evaluate_missed_deadlines(goal_id)
                goal = await self.habit_service.refresh_goal_status(goal_id)
                stats['processed'] += 1

                if goal.current_status == GoalStatus.RED and before.current_status != GoalStatus.RED:
                    stats['turned_red'] += 1

                if goal.current_status == GoalStatus.RED and await self._escalate_shame(goal, to_notify):
                    stats['shamed'] += 1
            except Exception as e:
                stats['failed'] += 1
                logger.error(f"❌ Ошибка проверки цели {goal_id}: {e}")

        if to_notify:
            await self._send_shame_notifications(to_notify)

        logger.info(f"🔎 Проверка дедлайнов: {stats}")
        return stats

    async def _escalate_shame(self, goal: Goal, to_notify: Dict[str, List[Dict[str, str]]]) -> bool:
        """Один инкремент shame_score за каждые полные shame_after в красном"""
        if goal.red_since is None:
            return False

        due = int((self.habit_service.clock() - goal.red_since) / self.shame_after)
        increments = due - goal.shame_count
        if increments <= 0:
            return False

        profile_data = self.store.get(USERS, goal.owner_id)
        profile = UserProfile.from_dict(profile_data) if profile_data else UserProfile(user_id=goal.owner_id)
        profile.shame_score += increments
        self.store.put(USERS, profile.user_id, profile.to_dict())

        async with self.store.transaction(("goal", goal.goal_id)):
            goal.shame_count = due
            await self.habit_service.save_goal(goal)
        logger.info(f"😳 {profile.user_id}: цель {goal.goal_id} в красном, shame_score = {profile.shame_score}")

        for friend_id in profile.friends:
            to_notify.setdefault(friend_id, []).append({
                'user_name': profile.display_name,
                'goal_description': goal.description
            })
        return True

    async def _send_shame_notifications(self, to_notify: Dict[str, List[Dict[str, str]]]):
        for friend_id, events in to_notify.items():
            friend_data = self.store.get(USERS, friend_id)
            if not friend_data:
                continue
            friend = UserProfile.from_dict(friend_data)
            if not friend.push_token or not friend.notifications_enabled:
                logger.info(f"У друга {friend_id} нет токена для уведомлений")
                continue
            try:
                await self.notification_sender.send(shame_message(friend.push_token, events))
            except Exception as e:
                logger.error(f"❌ Не удалось отправить уведомление другу {friend_id}: {e}")
