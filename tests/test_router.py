import pytest

from app.flow.states import ConversationState
from app.models.channel import ChannelKind
from app.schemas.webhook import InboundMessage
from utils.constants import COMPLETION_MESSAGE, WELCOME_MESSAGE


def telegram_text(text, chat_id="1001"):
    return InboundMessage(channel=ChannelKind.TELEGRAM, native_id=chat_id, text=text, first_name="Alice")


def whatsapp_text(text, phone="15551234567"):
    return InboundMessage(channel=ChannelKind.WHATSAPP, native_id=phone, text=text)


def whatsapp_choice(index, title, phone="15551234567"):
    return InboundMessage(
        channel=ChannelKind.WHATSAPP,
        native_id=phone,
        text=title,
        choice_id=f"option_{index}",
        choice_title=title,
    )


@pytest.mark.asyncio
async def test_start_command_welcomes_and_registers_user(container, telegram, database):
    outcome = await container.router.handle(telegram_text("/start", chat_id="777"))

    assert outcome == "welcomed"
    assert telegram.calls == [("send_text", "777", WELCOME_MESSAGE)]

    link = await database.channel_links.find_one({"kind": "TELEGRAM", "native_id": "777"})
    user = await database.users.find_one({"_id": link["user_id"]})
    assert user["display_name"] == "Alice"
    assert user["state"] is None


@pytest.mark.asyncio
async def test_whatsapp_day_runs_from_template_to_completion(container, seed, whatsapp, today):
    await seed.user("alice", [(ChannelKind.WHATSAPP, "15551234567")])
    await seed.feelings("alice")
    await container.scheduler.run_daily_broadcast()
    assert await container.sessions.get_state("alice") == ConversationState.AWAITING_PERMISSION

    assert await container.router.handle(whatsapp_text("Yes")) == "continued"
    assert await container.sessions.get_state("alice") == ConversationState.AWAITING_ANSWER

    assert await container.router.handle(whatsapp_choice(0, "Great")) == "continued"
    assert await container.router.handle(whatsapp_choice(1, "Good")) == "completed"

    assert [call[2] for call in whatsapp.calls_to("send_question")] == [
        "How are you feeling today?",
        "Did you exercise?",
    ]
    assert whatsapp.calls[-1] == ("send_text", "15551234567", COMPLETION_MESSAGE)
    assert await container.sessions.get_state("alice") == ConversationState.COMPLETED
    assert await container.ledger.find_next_pending("alice", today) is None


@pytest.mark.asyncio
async def test_telegram_keyboard_replies_continue_the_sequence(container, seed, telegram):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")
    await container.scheduler.run_daily_broadcast()

    assert await container.router.handle(telegram_text("Good")) == "continued"
    assert await container.router.handle(telegram_text("2")) == "completed"

    assert len(telegram.calls_to("send_question")) == 2
    assert telegram.calls[-1] == ("send_text", "1001", COMPLETION_MESSAGE)


@pytest.mark.asyncio
async def test_superscript_digit_is_not_read_as_an_option_number(container, seed, telegram):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")
    await container.scheduler.run_daily_broadcast()

    assert await container.router.handle(telegram_text("²")) == "echoed"
    assert telegram.calls[-1] == ("send_text", "1001", "You said: ²")
    assert len(telegram.calls_to("send_question")) == 1


@pytest.mark.asyncio
async def test_skip_moves_to_next_question(container, seed, telegram):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")
    await container.scheduler.run_daily_broadcast()

    assert await container.router.handle(telegram_text("skip")) == "continued"
    assert telegram.calls_to("send_question")[-1][2] == "Did you exercise?"


@pytest.mark.asyncio
async def test_unrelated_text_is_echoed(container, seed, telegram, today):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")

    assert await container.router.handle(telegram_text("Great")) == "echoed"
    assert telegram.calls == [("send_text", "1001", "You said: Great")]
    assert not await container.ledger.has_active_sequence("alice", today)
    assert await container.sessions.get_state("alice") == ConversationState.IDLE


@pytest.mark.asyncio
async def test_list_reply_without_active_sequence_is_echoed(container, seed, whatsapp):
    await seed.user("alice", [(ChannelKind.WHATSAPP, "15551234567")])

    assert await container.router.handle(whatsapp_choice(0, "Great")) == "echoed"
    assert whatsapp.calls == [("send_text", "15551234567", "You said: Great")]


@pytest.mark.asyncio
async def test_continue_keyword_opens_the_day_without_a_broadcast(container, seed, telegram):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")], state="completed")
    await seed.feelings("alice")

    assert await container.router.handle(telegram_text("next")) == "continued"
    assert telegram.calls_to("send_question")[0][2] == "How are you feeling today?"
    assert await container.sessions.get_state("alice") == ConversationState.AWAITING_ANSWER


@pytest.mark.asyncio
async def test_transport_failure_is_contained(container, seed, telegram, today):
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")
    telegram.fail = True

    assert await container.router.handle(telegram_text("yes")) == "failed"
    assert not await container.ledger.has_active_sequence("alice", today)
