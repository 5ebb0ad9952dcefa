# services/nudge_service.py

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from core.models import Nudge, UserProfile
from core.nudges import (
    SendNudgeInput, RateLimitError,
    validate_nudge_input, remaining_cooldown_minutes, collect_active_cooldowns, build_nudge
)
from services.notifications import NotificationSender, NullNotificationSender, nudge_message
from services.store import DocumentStore
from utils.datetime_utils import utc_now, parse_datetime

logger = logging.getLogger(__name__)

NUDGES = "nudges"
USERS = "users"

HISTORY_LIMIT = 100

class NudgeService:
    """
    Сервис напоминаний друзьям

    Обеспечивает:
    - Кулдаун 60 минут на пару (отправитель, цель)
    - Атомарную проверку кулдауна и запись напоминания
    - Доставку уведомления без влияния на результат отправки
    """

    def __init__(self, store: DocumentStore, notification_sender: Optional[NotificationSender] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.notification_sender = notification_sender or NullNotificationSender()
        self.clock = clock
        logger.info("✅ NudgeService инициализирован")

    # ===== КУЛДАУНЫ =====

    def _active_cooldowns(self, user_id: str, now: datetime) -> Dict[str, datetime]:
        documents = self.store.query(
            NUDGES,
            where=lambda doc: parse_datetime(doc['cooldown_until']) > now,
            sender_id=user_id
        )
        return collect_active_cooldowns((Nudge.from_dict(doc) for doc in documents), now)

    async def get_nudge_cooldowns(self, user_id: str) -> Dict[str, datetime]:
        """goal_id -> окончание кулдауна для напоминаний пользователя"""
        if not user_id:
            return {}
        return self._active_cooldowns(user_id, self.clock())

    async def can_send_nudge(self, user_id: str, goal_id: str) -> bool:
        return await self.get_remaining_cooldown_minutes(user_id, goal_id) == 0

    async def get_remaining_cooldown_minutes(self, user_id: str, goal_id: str) -> int:
        if not user_id or not goal_id:
            return 0
        now = self.clock()
        cooldown_until = self._active_cooldowns(user_id, now).get(goal_id)
        return remaining_cooldown_minutes(cooldown_until, now)

    # ===== ОТПРАВКА =====

    async def send_nudge(self, nudge_input: SendNudgeInput) -> str:
        """Создать напоминание и вернуть его id"""
        validate_nudge_input(nudge_input)

        async with self.store.transaction((nudge_input.sender_id, nudge_input.goal_id)):
            now = self.clock()
            cooldown_until = self._active_cooldowns(nudge_input.sender_id, now).get(nudge_input.goal_id)
            remaining = remaining_cooldown_minutes(cooldown_until, now)
            if remaining > 0:
                logger.info(f"⏳ {nudge_input.sender_id} -> цель {nudge_input.goal_id}: кулдаун ещё {remaining} мин")
                raise RateLimitError(remaining)

            nudge = build_nudge(nudge_input, now)
            self.store.put(NUDGES, nudge.nudge_id, nudge.to_dict())

        logger.info(f"👉 Напоминание {nudge.nudge_id}: {nudge.sender_id} -> {nudge.receiver_id} ({nudge.goal_id})")

        await self._deliver(nudge)
        return nudge.nudge_id

    async def _deliver(self, nudge: Nudge) -> bool:
        """Отправка push получателю. Ошибки только логируются"""
        profile_data = self.store.get(USERS, nudge.receiver_id)
        if not profile_data:
            logger.info(f"Получатель {nudge.receiver_id} не найден, уведомление не отправлено")
            return False

        profile = UserProfile.from_dict(profile_data)
        if not profile.notifications_enabled:
            logger.info(f"Пользователь {profile.user_id} отключил уведомления")
            return False
        if not profile.push_token:
            logger.info(f"У пользователя {profile.user_id} нет токена для уведомлений")
            return False

        message = nudge_message(profile.push_token, nudge.sender_name, nudge.goal_id,
                                nudge.goal_description, nudge.sender_id)
        try:
            delivered = await self.notification_sender.send(message)
        except Exception as e:
            logger.warning(f"⚠️ Не удалось доставить напоминание {nudge.nudge_id}: {e}")
            return False

        if not delivered:
            logger.warning(f"⚠️ Напоминание {nudge.nudge_id} не доставлено")
        return bool(delivered)

    # ===== ИСТОРИЯ =====

    async def get_nudge_history(self, user_id: str, direction: str = "sent", days: int = 7) -> List[Nudge]:
        """Отправленные или полученные напоминания за последние days дней"""
        if direction not in ("sent", "received"):
            raise ValueError(f"direction должен быть 'sent' или 'received': {direction}")
        if days <= 0:
            raise ValueError("days должен быть положительным числом")
        if not user_id:
            return []

        cutoff = self.clock() - timedelta(days=days)
        field_name = "sender_id" if direction == "sent" else "receiver_id"
        documents = self.store.query(
            NUDGES,
            where=lambda doc: parse_datetime(doc['timestamp']) >= cutoff,
            **{field_name: user_id}
        )
        nudges = sorted((Nudge.from_dict(doc) for doc in documents), key=lambda n: n.timestamp, reverse=True)
        return nudges[:HISTORY_LIMIT]
