import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import ValidationError
from app.flow.states import ConversationState
from app.main import app
from app.models.channel import ChannelKind

ENDPOINT = "https://push.example/bob"


@pytest.fixture
def client(container):
    app.state.container = container
    return TestClient(app)


async def push_only_user_after_broadcast(container, seed):
    await seed.user("bob", [(ChannelKind.WEB_PUSH, ENDPOINT)])
    await seed.feelings("bob")
    await container.scheduler.run_daily_broadcast()


# ==============================================
# SERVICE
# ==============================================

@pytest.mark.asyncio
async def test_push_user_answers_through_to_completion(container, seed, web_push):
    await push_only_user_after_broadcast(container, seed)
    assert web_push.calls_to("send_start_of_day") == [("send_start_of_day", ENDPOINT, 2)]
    assert await container.sessions.get_state("bob") == ConversationState.AWAITING_PERMISSION

    await container.answers.submit_answer("bob", "q1", "Great")
    assert await container.sessions.get_state("bob") == ConversationState.AWAITING_ANSWER

    await container.answers.submit_answer("bob", "q2", "Okay")
    assert await container.sessions.get_state("bob") == ConversationState.COMPLETED


@pytest.mark.asyncio
async def test_resubmitting_replaces_the_answer(container, seed, database, today):
    await push_only_user_after_broadcast(container, seed)

    await container.answers.submit_answer("bob", "q1", "Great")
    answer = await container.answers.submit_answer("bob", "q1", "Not great")

    assert answer.answer == "Not great"
    assert await database.answers.count_documents({"user_id": "bob", "question_id": "q1", "day": today}) == 1
    assert await container.answers.answers_for_day("bob", today) == {"q1": "Not great"}


@pytest.mark.asyncio
async def test_answer_must_be_a_listed_option(container, seed, database):
    await push_only_user_after_broadcast(container, seed)

    with pytest.raises(ValidationError):
        await container.answers.submit_answer("bob", "q1", "Fantastic")

    assert await database.answers.count_documents({}) == 0
    assert await container.sessions.get_state("bob") == ConversationState.AWAITING_PERMISSION


@pytest.mark.asyncio
async def test_unsubscribed_question_is_rejected(container, seed):
    await seed.user("bob")
    await seed.question("q9", "Not subscribed", ["a"])
    await seed.question("q8", "Opted out", ["a"])
    await seed.preference("bob", "q8", enabled=False)

    for question_id in ("q9", "q8", "missing"):
        with pytest.raises(ValidationError):
            await container.answers.submit_answer("bob", question_id, "a")


@pytest.mark.asyncio
async def test_answer_for_another_day_leaves_state_alone(container, seed, database):
    await push_only_user_after_broadcast(container, seed)

    answer = await container.answers.submit_answer("bob", "q1", "Good", day="2024-04-30")

    assert answer.day == "2024-04-30"
    assert await container.sessions.get_state("bob") == ConversationState.AWAITING_PERMISSION


@pytest.mark.asyncio
async def test_answer_outside_a_sequence_is_stored_without_transition(container, seed):
    await seed.user("bob", state="completed")
    await seed.feelings("bob")

    await container.answers.submit_answer("bob", "q1", "Great")

    assert await container.sessions.get_state("bob") == ConversationState.COMPLETED


# ==============================================
# HTTP
# ==============================================

@pytest.mark.asyncio
async def test_answer_endpoint(client, container, seed, today):
    await push_only_user_after_broadcast(container, seed)

    response = client.post("/api/v1/users/bob/answers", json={"question_id": "q1", "answer": "Good"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Answer saved successfully",
        "day": today,
        "state": "awaiting_answer",
    }

    page = client.get(f"/api/v1/users/bob/questions/{today}").json()
    assert [question["current_answer"] for question in page["questions"]] == ["Good", None]


@pytest.mark.asyncio
async def test_answer_endpoint_rejects_invalid_input(client, container, seed):
    await push_only_user_after_broadcast(container, seed)

    invalid_option = client.post("/api/v1/users/bob/answers", json={"question_id": "q1", "answer": "Meh"})
    assert invalid_option.status_code == 422
    assert invalid_option.json()["code"] == "VALIDATION_ERROR"

    bad_day = client.post(
        "/api/v1/users/bob/answers",
        json={"question_id": "q1", "answer": "Good", "day": "yesterday"},
    )
    assert bad_day.status_code == 422

    missing_answer = client.post("/api/v1/users/bob/answers", json={"question_id": "q1"})
    assert missing_answer.status_code == 422


def test_answer_endpoint_unknown_user(client):
    response = client.post("/api/v1/users/ghost/answers", json={"question_id": "q1", "answer": "Good"})

    assert response.status_code == 404
