import pytest

from app.core.exceptions import TransportError, UnsupportedChannelError
from app.flow.rendering import format_question_text
from app.models.channel import ChannelKind
from app.models.question import Question
from app.transports.base import ChannelTransport, StartOfDayMode, send_result


@pytest.mark.asyncio
async def test_sends_first_pending_question_as_keyboard(container, seed, telegram, today):
    await seed.feelings("alice")

    delivered = await container.dispatcher.send_next_question("alice", ChannelKind.TELEGRAM, "1001")

    assert delivered is True
    assert telegram.calls == [
        ("send_question", "1001", "How are you feeling today?", ["Great", "Good", "Okay", "Not great"])
    ]
    assert (await container.ledger.find_next_pending("alice", today)).id == "q2"


@pytest.mark.asyncio
async def test_walks_the_sequence_then_reports_exhaustion(container, seed, whatsapp):
    await seed.feelings("alice")

    assert await container.dispatcher.send_next_question("alice", ChannelKind.WHATSAPP, "15551234567")
    assert await container.dispatcher.send_next_question("alice", ChannelKind.WHATSAPP, "15551234567")
    assert await container.dispatcher.send_next_question("alice", ChannelKind.WHATSAPP, "15551234567") is False

    sent = [call[2] for call in whatsapp.calls_to("send_question")]
    assert sent == ["How are you feeling today?", "Did you exercise?"]


@pytest.mark.asyncio
async def test_nothing_subscribed_sends_nothing(container, telegram):
    assert await container.dispatcher.send_next_question("alice", ChannelKind.TELEGRAM, "1001") is False
    assert telegram.calls == []


@pytest.mark.asyncio
async def test_failed_delivery_leaves_ledger_untouched(container, seed, telegram, today):
    await seed.feelings("alice")
    telegram.fail = True

    with pytest.raises(TransportError):
        await container.dispatcher.send_next_question("alice", ChannelKind.TELEGRAM, "1001")

    assert not await container.ledger.has_active_sequence("alice", today)
    assert (await container.ledger.find_next_pending("alice", today)).id == "q1"


@pytest.mark.asyncio
async def test_web_push_cannot_carry_questions(container, seed, web_push, today):
    await seed.feelings("alice")

    with pytest.raises(UnsupportedChannelError):
        await container.dispatcher.send_next_question("alice", ChannelKind.WEB_PUSH, "https://push.example/abc")

    assert web_push.calls == []
    assert not await container.ledger.has_active_sequence("alice", today)


def test_plain_text_rendering():
    question = Question(_id="q1", text="How are you feeling today?", options=["Great", "Good", "Okay", "Not great"])

    assert format_question_text(question) == (
        "How are you feeling today?\n\n"
        "1. Great\n"
        "2. Good\n"
        "3. Okay\n"
        "4. Not great\n\n"
        "Please reply with the number of your choice."
    )


class PlainTextTransport(ChannelTransport):
    kind = ChannelKind.TELEGRAM
    start_of_day_mode = StartOfDayMode.QUESTION

    def __init__(self, settings):
        super().__init__(settings)
        self.texts = []

    def is_configured(self):
        return True

    async def send_text(self, native_id, text):
        self.texts.append((native_id, text))
        return send_result(True)


@pytest.mark.asyncio
async def test_channels_without_choice_widget_get_numbered_text(settings):
    transport = PlainTextTransport(settings)
    question = Question(_id="q1", text="Pick one", options=["Red", "Blue"])

    result = await transport.send_question("42", question)

    assert result["success"]
    assert transport.texts == [("42", "Pick one\n\n1. Red\n2. Blue\n\nPlease reply with the number of your choice.")]
