"""
Доставка push-уведомлений

Отправка выполняется по принципу best-effort: вызывающий код логирует
ошибки и не откатывает уже сохраненные данные.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List

from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

class DependencyFailure(Exception):
    """Ошибка внешнего сервиса доставки"""
    pass

@dataclass
class PushMessage:
    token: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)

class NotificationSender(ABC):
    """Отправитель уведомлений. True - доставлено, False - не доставлено"""

    @abstractmethod
    async def send(self, message: PushMessage) -> bool:
        pass

class TelegramNotificationSender(NotificationSender):
    """Доставка через Telegram: token - это chat_id получателя"""

    def __init__(self, bot: Bot):
        self.bot = bot

    @classmethod
    def from_token(cls, bot_token: str) -> "TelegramNotificationSender":
        return cls(Bot(token=bot_token))

    async def send(self, message: PushMessage) -> bool:
        text = f"🔔 *{message.title}*\n\n{message.body}"
        try:
            await self.bot.send_message(
                chat_id=message.token,
                text=text,
                parse_mode='Markdown'
            )
        except TelegramError as e:
            raise DependencyFailure(f"Telegram не доставил уведомление: {e}") from e

        logger.info(f"📤 Уведомление отправлено в чат {message.token}: {message.title}")
        return True

class NullNotificationSender(NotificationSender):
    """Используется, когда доставка не настроена"""

    def __init__(self):
        self.skipped: List[PushMessage] = []

    async def send(self, message: PushMessage) -> bool:
        self.skipped.append(message)
        logger.debug(f"Доставка не настроена, уведомление '{message.title}' пропущено")
        return False

def create_notification_sender(bot_token: str = None) -> NotificationSender:
    if bot_token:
        logger.info("📅 Доставка уведомлений через Telegram включена")
        return TelegramNotificationSender.from_token(bot_token)
    logger.warning("⚠️ BOT_TOKEN не задан - уведомления отключены")
    return NullNotificationSender()

def nudge_message(token: str, sender_name: str, goal_id: str, goal_description: str, sender_id: str) -> PushMessage:
    return PushMessage(
        token=token,
        title="Nudge from a Friend!",
        body=f"{sender_name} is nudging you about: {goal_description}",
        data={
            'type': 'nudge_notification',
            'sender_id': sender_id,
            'sender_name': sender_name,
            'goal_id': goal_id,
            'goal_description': goal_description,
        }
    )

def shame_message(token: str, events: List[Dict[str, str]]) -> PushMessage:
    if len(events) == 1:
        body = f"{events[0]['user_name']} failed: {events[0]['goal_description']}"
    else:
        body = f"{len(events)} friends failed their goals"
    return PushMessage(
        token=token,
        title="Friend Failed Goal!",
        body=body,
        data={'type': 'shame_notification', 'count': str(len(events))}
    )
