"""
UNPLUG Telegram Notification Service
Forwards ear-fatigue warnings to a Telegram chat.
"""

import logging
import time
from typing import Dict, Optional
import httpx

from app.core.config import settings

logger = logging.getLogger("unplug.telegram")

# Rate limiting: don't spam Telegram (max 1 alert every 10 seconds)
_last_alert_time: float = 0
ALERT_COOLDOWN_SECONDS = 10


class TelegramService:
    """Sends notifications to Telegram via Bot API"""

    _instance: Optional['TelegramService'] = None

    @classmethod
    def get_instance(cls) -> 'TelegramService':
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self):
        self.enabled = bool(settings.TELEGRAM_ENABLED and settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID)
        self.bot_token = settings.TELEGRAM_BOT_TOKEN
        self.chat_id = settings.TELEGRAM_CHAT_ID
        self.base_url = f"https://api.telegram.org/bot{self.bot_token}"

        if self.enabled:
            logger.info("Telegram notifications enabled")
        else:
            logger.info("Telegram notifications disabled (set TELEGRAM_BOT_TOKEN & TELEGRAM_CHAT_ID in .env)")

    async def _send_message(self, text: str, parse_mode: str = "HTML") -> bool:
        """Send a message via Telegram Bot API"""
        if not self.enabled:
            return False
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.post(
                    f"{self.base_url}/sendMessage",
                    json={
                        "chat_id": self.chat_id,
                        "text": text,
                        "parse_mode": parse_mode,
                    },
                )
                if resp.status_code == 200:
                    return True
                else:
                    logger.warning(f"Telegram API error {resp.status_code}: {resp.text}")
                    return False
        except Exception as e:
            logger.error(f"Telegram send failed: {e}")
            return False

    async def send_fatigue_alert(self, alert: Dict) -> bool:
        """
        Send an ear-fatigue alert to Telegram. Rate-limited via the
        module-level cooldown.

        Parameters
        ----------
        alert : dict
            Must contain ``alert_type``, ``severity``, ``message``.
            Optional: ``fatigue_level``, ``usage_duration``.
        """
        global _last_alert_time
        if not self.enabled:
            return False

        now = time.time()
        if now - _last_alert_time < ALERT_COOLDOWN_SECONDS:
            return False
        _last_alert_time = now

        severity = alert.get("severity", "info")
        readable_type = alert.get("alert_type", "unknown").replace("_", " ").title()
        fatigue = alert.get("fatigue_level", 0.0)
        usage_minutes = alert.get("usage_duration", 0.0) / 60

        text = (
            f"🎧 <b>UNPLUG | {readable_type}</b>\n\n"
            f"⚡ Severity: <b>{severity.upper()}</b>\n"
            f"💬 {alert.get('message', '')}\n"
            f"📈 Fatigue: {fatigue * 100:.0f}%\n"
            f"⏱ Listening: {usage_minutes:.0f} min\n\n"
            f"🕐 {time.strftime('%Y-%m-%d %H:%M:%S')}"
        )

        return await self._send_message(text)


# Singleton accessor
def get_telegram_service() -> TelegramService:
    return TelegramService.get_instance()
