# maxpulse_backend/services/telegram_notification.py
"""
🔔 Telegram admin alerts
========================

Notifies the admin chat about new withdrawal requests.

USAGE:
    from maxpulse_backend.services.telegram_notification import TelegramNotificationService

    await TelegramNotificationService.send_withdrawal_alert(
        distributor_code="WB2025991",
        distributor_name="Jane Doe",
        amount=Decimal("120.00"),
        withdrawal_method="bank_transfer",
        new_balance=Decimal("35.50")
    )

Nothing is sent when TELEGRAM_BOT_TOKEN or TELEGRAM_ADMIN_CHAT_ID is missing.
"""

import asyncio
import aiohttp
from decimal import Decimal
from html import escape
from typing import Dict, Any

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.utils.helpers import format_money, format_datetime

logger = get_logger(__name__)


class TelegramConfig:
    """Telegram Notification Service configuration"""

    MAX_MESSAGE_LENGTH = 4096
    REQUEST_TIMEOUT = 30.0
    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    EMOJI_WITHDRAWAL = "💸"
    EMOJI_DISTRIBUTOR = "👤"
    EMOJI_BALANCE = "💰"


class TelegramNotificationService:
    """
    Sends admin notifications to Telegram.
    """

    @staticmethod
    def format_withdrawal_message(
        distributor_code: str,
        distributor_name: str,
        amount: Decimal,
        withdrawal_method: str,
        new_balance: Decimal
    ) -> str:
        lines = [
            f"{TelegramConfig.EMOJI_WITHDRAWAL} <b>New withdrawal request</b>",
            "",
            f"{TelegramConfig.EMOJI_DISTRIBUTOR} {escape(distributor_name)} ({escape(distributor_code)})",
            f"Amount: <b>{format_money(amount)}</b>",
            f"Method: {escape(withdrawal_method)}",
            f"{TelegramConfig.EMOJI_BALANCE} Remaining balance: {format_money(new_balance)}",
            f"🕐 {format_datetime()}",
        ]
        return "\n".join(lines)[:TelegramConfig.MAX_MESSAGE_LENGTH]

    @staticmethod
    async def send_message(
        bot_token: str,
        chat_id: str,
        text: str,
        parse_mode: str = "HTML"
    ) -> Dict[str, Any]:
        """
        Send a message through the Telegram Bot API.

        Returns:
            {"success": bool, "error": str|None, "message_id": int|None}
        """
        url = TelegramConfig.API_URL.format(token=bot_token)
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True
        }

        try:
            logger.info(f"[TELEGRAM] Sending message to chat {chat_id}")

            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=TelegramConfig.REQUEST_TIMEOUT)
                ) as response:
                    result = await response.json()

                    if response.status == 200 and result.get("ok"):
                        message_id = result.get("result", {}).get("message_id")
                        logger.info(f"[TELEGRAM] ✅ Message sent successfully, message_id: {message_id}")
                        return {"success": True, "error": None, "message_id": message_id}

                    error_description = result.get("description", "Unknown error")
                    logger.error(f"[TELEGRAM] ❌ API error: {response.status} - {error_description}")
                    return {
                        "success": False,
                        "error": f"Telegram API error: {error_description}",
                        "message_id": None
                    }

        except aiohttp.ClientError as e:
            logger.error(f"[TELEGRAM] ❌ Connection error: {e}")
            return {"success": False, "error": f"Connection error: {str(e)}", "message_id": None}
        except asyncio.TimeoutError:
            logger.error("[TELEGRAM] ❌ Request timeout")
            return {"success": False, "error": "Request timeout", "message_id": None}

    @classmethod
    async def send_withdrawal_alert(
        cls,
        distributor_code: str,
        distributor_name: str,
        amount: Decimal,
        withdrawal_method: str,
        new_balance: Decimal
    ) -> Dict[str, Any]:
        """
        Alert the admin chat about a withdrawal request.
        """
        if not settings.TELEGRAM_BOT_TOKEN or not settings.TELEGRAM_ADMIN_CHAT_ID:
            logger.debug("[TELEGRAM] Admin alerts not configured, skipping")
            return {"success": False, "error": "Telegram not configured", "message_id": None}

        text = cls.format_withdrawal_message(
            distributor_code, distributor_name, amount, withdrawal_method, new_balance
        )
        return await cls.send_message(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_ADMIN_CHAT_ID, text)
