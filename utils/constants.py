"""
utils/constants.py

Purpose: Centralized static content

- User-facing messages
- Keywords recognised in inbound messages
- Push notification defaults

(Prevents hardcoding across the codebase)
"""

# ============================================================
# INBOUND KEYWORDS
# ============================================================

START_COMMAND = "/start"

# Free-form replies that start or continue today's sequence
CONTINUE_KEYWORDS = {"yes", "start", "next"}

# Replies that skip the current question and move on
SKIP_KEYWORDS = {"skip"}

# ============================================================
# MESSAGES
# ============================================================

WELCOME_MESSAGE = (
    "👋 Welcome! I'm your notification bot.\n\n"
    "Your account will be created automatically when you send your first message. "
    "Feel free to start chatting!"
)

COMPLETION_MESSAGE = "✅ That's all your questions for today! Thank you for participating."

ECHO_MESSAGE = "You said: {text}"

PLAIN_TEXT_INSTRUCTION = "Please reply with the number of your choice."

# ============================================================
# WHATSAPP
# ============================================================

WHATSAPP_LIST_BUTTON = "Choose option"
WHATSAPP_LIST_SECTION_TITLE = "Options"
WHATSAPP_MAX_LIST_ROWS = 10
WHATSAPP_ROW_TITLE_MAX = 24
WHATSAPP_ROW_DESCRIPTION_MAX = 96

# ============================================================
# WEB PUSH
# ============================================================

PUSH_TITLE = "Your daily questions are ready"
PUSH_BODY = "You have {count} question(s) waiting for you today."
PUSH_ICON = "/icon-192x192.png"
PUSH_TAG = "daily-questions"
PUSH_QUESTIONS_PATH = "/questions"
PUSH_ACTION_TITLE = "View Questions"
