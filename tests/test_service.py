import asyncio

import pytest

from api.features.conversation.entities.message import MessageRole
from api.features.conversation.exceptions import (
    EmptyContentError,
    InvalidTypeError,
    MissingFieldError,
    ModelAuthError,
)
from api.features.conversation.repository import ConversationStore
from api.features.conversation.service import ChatOrchestrator, build_prompt
from api.shared.exceptions import StorageReadError, StorageWriteError

from conftest import SYSTEM_PROMPT, FailingUserWriteStore, FakeChatModel, make_store


class FailingAssistantWriteStore(ConversationStore):
    async def append(self, thread_id, role, content):
        if MessageRole(role) is MessageRole.ASSISTANT:
            raise StorageWriteError("Failed to save message")
        return await super().append(thread_id, role, content)


class FailingHistoryStore(ConversationStore):
    async def history(self, thread_id):
        raise StorageReadError("Failed to load conversation history")


def run_turns(settings, payloads, model=None, store_cls=None):
    """Run payloads through one orchestrator; return results and final histories."""
    model = model or FakeChatModel()

    async def scenario():
        store = make_store(settings)
        if store_cls is not None:
            store = store_cls(store.database)
        await store.initialize()
        orchestrator = ChatOrchestrator(store, model, SYSTEM_PROMPT)
        results = [await orchestrator.send_message(p) for p in payloads]
        threads = {p.get("threadId") for p in payloads if isinstance(p, dict)}
        histories = {
            t: await ConversationStore.history(store, t)
            for t in threads
            if isinstance(t, str)
        }
        await store.close()
        return results, histories

    results, histories = asyncio.run(scenario())
    return results, histories, model


def test_first_turn_writes_user_then_assistant_row(settings):
    results, histories, model = run_turns(settings, [{"threadId": "t1", "content": "Hello"}])

    assert results[0].ok and results[0].reply == "Hi! How can I help?"
    assert results[0].prompt == model.calls[0]
    history = histories["t1"]
    assert [(m.role, m.content) for m in history] == [
        (MessageRole.USER, "Hello"),
        (MessageRole.ASSISTANT, "Hi! How can I help?"),
    ]
    assert history[0].id < history[1].id
    assert model.calls == [
        [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Hello"},
        ]
    ]


def test_second_turn_sends_system_plus_three_prior_messages(settings):
    results, histories, model = run_turns(
        settings,
        [
            {"threadId": "t1", "content": "Hello"},
            {"threadId": "t1", "content": "And then?"},
        ],
    )

    assert all(r.ok for r in results)
    second_prompt = model.calls[1]
    assert [m["role"] for m in second_prompt] == ["system", "user", "assistant", "user"]
    assert second_prompt[-1]["content"] == "And then?"
    assert len(histories["t1"]) == 4


def test_prompt_is_rederivable_from_stored_history(settings):
    _, histories, model = run_turns(
        settings,
        [
            {"threadId": "t1", "content": "one"},
            {"threadId": "t1", "content": "two"},
            {"threadId": "t1", "content": "three"},
        ],
    )

    history = histories["t1"]
    assert len(history) == 6
    # Each prompt equals the system instruction plus the rows stored before that reply.
    for turn, prompt in enumerate(model.calls):
        assert prompt == build_prompt(SYSTEM_PROMPT, history[: 2 * turn + 1])


def test_content_is_stored_untrimmed(settings):
    _, histories, _ = run_turns(settings, [{"threadId": "t1", "content": "  padded \n"}])

    assert histories["t1"][0].content == "  padded \n"


@pytest.mark.parametrize(
    "payload, error_type",
    [
        ({"content": "Hello"}, MissingFieldError),
        ({"threadId": "t1"}, MissingFieldError),
        ({"threadId": "", "content": "Hello"}, MissingFieldError),
        ({"threadId": "t1", "content": None}, MissingFieldError),
        ({"threadId": 42, "content": "Hello"}, InvalidTypeError),
        ({"threadId": "t1", "content": ["Hello"]}, InvalidTypeError),
        ({"threadId": "t1", "content": "   "}, EmptyContentError),
        ({"threadId": "t1", "content": "\n\t"}, EmptyContentError),
        (["not", "an", "object"], InvalidTypeError),
        (None, MissingFieldError),
    ],
)
def test_invalid_payloads_write_nothing_and_skip_the_model(settings, payload, error_type):
    results, histories, model = run_turns(settings, [payload])

    result = results[0]
    assert not result.ok
    assert isinstance(result.error, error_type)
    assert result.failed_step == "validate"
    assert model.calls == []
    assert all(history == [] for history in histories.values())


def test_model_auth_failure_keeps_only_the_user_row(settings):
    model = FakeChatModel(error=ModelAuthError())
    results, histories, _ = run_turns(settings, [{"threadId": "t1", "content": "Hello"}], model=model)

    assert isinstance(results[0].error, ModelAuthError)
    assert results[0].failed_step == "model"
    assert [(m.role, m.content) for m in histories["t1"]] == [(MessageRole.USER, "Hello")]


def test_history_failure_aborts_before_the_model_call(settings):
    results, _, model = run_turns(
        settings,
        [{"threadId": "t1", "content": "Hello"}],
        store_cls=FailingHistoryStore,
    )

    assert isinstance(results[0].error, StorageReadError)
    assert results[0].failed_step == "history"
    assert model.calls == []
    assert results[0].prompt == []


def test_assistant_write_failure_loses_the_reply(settings):
    results, histories, model = run_turns(
        settings,
        [{"threadId": "t1", "content": "Hello"}],
        store_cls=FailingAssistantWriteStore,
    )

    result = results[0]
    assert isinstance(result.error, StorageWriteError)
    assert result.failed_step == "append_assistant"
    assert result.reply is None
    assert len(model.calls) == 1
    assert [m.role for m in histories["t1"]] == [MessageRole.USER]


def test_user_write_failure_aborts_before_the_model_call(settings):
    results, histories, model = run_turns(
        settings,
        [{"threadId": "t1", "content": "Hello"}],
        store_cls=FailingUserWriteStore,
    )

    result = results[0]
    assert isinstance(result.error, StorageWriteError)
    assert result.failed_step == "append_user"
    assert result.thread_id == "t1"
    assert model.calls == []
    assert histories["t1"] == []
