"""
utils/whatsapp_utils.py

Purpose: WhatsApp Cloud API message builders

- Constructs text, template and interactive list payloads
- Enforces list limits (10 rows, 24-char titles, 96-char descriptions)
- Reads text and list replies out of inbound messages
"""

from typing import List, Dict, Optional, Any

from utils.constants import (
    WHATSAPP_LIST_BUTTON,
    WHATSAPP_LIST_SECTION_TITLE,
    WHATSAPP_MAX_LIST_ROWS,
    WHATSAPP_ROW_TITLE_MAX,
    WHATSAPP_ROW_DESCRIPTION_MAX,
)


def _envelope(to: str, message_type: str) -> Dict[str, Any]:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": message_type,
    }


def create_text_message(to: str, text: str, preview_url: bool = False) -> Dict[str, Any]:
    """
    Creates a plain text message payload.

    Args:
        to: Recipient phone number
        text: Message text (supports WhatsApp markdown)
        preview_url: Whether to show URL preview
    """
    payload = _envelope(to, "text")
    payload["text"] = {"body": text, "preview_url": preview_url}
    return payload


def build_list_rows(options: List[str]) -> List[Dict[str, str]]:
    """
    Turns answer options into list rows.

    Only the first 10 options are kept. Titles are cut at 24 characters;
    the overflow (up to 96 characters) moves to the row description.

    Example:
        build_list_rows(["Great", "Good"])
        -> [{"id": "option_0", "title": "Great"}, {"id": "option_1", "title": "Good"}]
    """
    rows = []
    for index, option in enumerate(options[:WHATSAPP_MAX_LIST_ROWS]):
        row = {
            "id": f"option_{index}",
            "title": option[:WHATSAPP_ROW_TITLE_MAX],
        }
        if len(option) > WHATSAPP_ROW_TITLE_MAX:
            row["description"] = option[WHATSAPP_ROW_TITLE_MAX:WHATSAPP_ROW_DESCRIPTION_MAX]
        rows.append(row)
    return rows


def create_list_message(
    to: str,
    text: str,
    options: List[str],
    button_text: str = WHATSAPP_LIST_BUTTON,
    section_title: str = WHATSAPP_LIST_SECTION_TITLE,
    header: Optional[str] = None,
    footer: Optional[str] = None
) -> Dict[str, Any]:
    """
    Creates an interactive list message with one row per option.

    Args:
        to: Recipient phone number
        text: Body text
        options: Answer options
        button_text: Button that reveals the list (max 20 chars)
        section_title: Title of the single section
        header: Optional header text
        footer: Optional footer text
    """
    interactive = {
        "type": "list",
        "body": {
            "text": text
        },
        "action": {
            "button": button_text[:20],
            "sections": [
                {
                    "title": section_title,
                    "rows": build_list_rows(options),
                }
            ]
        }
    }

    if header:
        interactive["header"] = {"type": "text", "text": header}

    if footer:
        interactive["footer"] = {"text": footer}

    payload = _envelope(to, "interactive")
    payload["interactive"] = interactive
    return payload


def create_template_message(
    to: str,
    template_name: str,
    language_code: str = "en_US",
    parameters: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Creates a template-based message (for approved WhatsApp templates).
    Used for sending messages outside the 24-hour session window.

    Args:
        to: Recipient phone number
        template_name: Name of approved template
        language_code: Language code
        parameters: Template body parameter values
    """
    template = {
        "name": template_name,
        "language": {
            "code": language_code
        }
    }

    if parameters:
        template["components"] = [
            {
                "type": "body",
                "parameters": [
                    {"type": "text", "text": param}
                    for param in parameters
                ]
            }
        ]

    payload = _envelope(to, "template")
    payload["template"] = template
    return payload


def parse_list_response(message: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """
    Parses a list selection out of an inbound message.

    Returns:
        {"id": ..., "title": ...} or None
    """
    interactive = message.get("interactive") or {}
    if interactive.get("type") == "list_reply":
        reply = interactive.get("list_reply") or {}
        return {"id": reply.get("id", ""), "title": reply.get("title", "")}
    return None


def get_message_text(message: Dict[str, Any]) -> Optional[str]:
    """
    Extracts text content from a text, template button or interactive message.
    """
    text = message.get("text")
    if isinstance(text, dict) and text.get("body") is not None:
        return text.get("body")

    # Quick-reply button on a template message
    if message.get("type") == "button":
        return (message.get("button") or {}).get("text")

    interactive = message.get("interactive") or {}
    reply_type = interactive.get("type")
    if reply_type == "button_reply":
        return interactive.get("button_reply", {}).get("title")
    if reply_type == "list_reply":
        return interactive.get("list_reply", {}).get("title")

    return None
