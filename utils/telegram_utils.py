"""
utils/telegram_utils.py

Purpose: Telegram Bot API payload builders

- sendMessage request bodies
- Reply keyboards with one answer option per row
"""

from typing import Any, Dict, List, Optional


def create_reply_keyboard(options: List[str]) -> Dict[str, Any]:
    """
    Builds a one-time reply keyboard, one button per row.
    """
    return {
        "keyboard": [[{"text": option}] for option in options],
        "one_time_keyboard": True,
        "resize_keyboard": True,
    }


def create_send_message(
    chat_id: str,
    text: str,
    reply_markup: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "chat_id": str(chat_id),
        "text": text,
    }
    if reply_markup:
        payload["reply_markup"] = reply_markup
    return payload
