from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText

from conftest import CHAT_ID, INLINE_ID, edit_bad_request
from downloaders.router import global_error_handler

USER = SimpleNamespace(id=5)


def make_event(exception=None, **sources):
    update = SimpleNamespace(
        update_id=1,
        message=sources.get("message"),
        callback_query=sources.get("callback_query"),
        inline_query=sources.get("inline_query"),
        chosen_inline_result=sources.get("chosen_inline_result"),
    )
    return SimpleNamespace(exception=exception or RuntimeError("boom"), update=update)


def chat_edit_error(message: str) -> TelegramBadRequest:
    return TelegramBadRequest(method=EditMessageText(text="x", chat_id=CHAT_ID, message_id=1), message=message)


@pytest.fixture
def bot():
    return SimpleNamespace(edit_message_text=AsyncMock())


@pytest.fixture
def chat_text(translator):
    return translator.t("en", "error_occurred_try_again") + translator.suffix()


async def test_expected_telegram_noise_is_suppressed(bot, translator):
    message = SimpleNamespace(from_user=USER, reply=AsyncMock())
    event = make_event(edit_bad_request("Bad Request: query is too old and response timeout expired"), message=message)

    assert await global_error_handler(event, bot, translator) is True
    message.reply.assert_not_called()
    bot.edit_message_text.assert_not_called()


async def test_inline_callback_error_edits_placeholder(bot, translator):
    callback = SimpleNamespace(from_user=USER, inline_message_id=INLINE_ID, message=None)

    assert await global_error_handler(make_event(callback_query=callback), bot, translator) is True
    bot.edit_message_text.assert_awaited_once_with(
        translator.t("en", "inline_error_general"), inline_message_id=INLINE_ID,
    )


async def test_chosen_result_error_edits_placeholder(bot, translator):
    chosen = SimpleNamespace(from_user=USER, inline_message_id=INLINE_ID)

    await global_error_handler(make_event(chosen_inline_result=chosen), bot, translator)

    assert bot.edit_message_text.call_args.kwargs == {"inline_message_id": INLINE_ID}


async def test_chat_callback_falls_back_to_new_message(bot, translator, chat_text):
    message = SimpleNamespace(
        edit_text=AsyncMock(side_effect=chat_edit_error("Bad Request: message can't be edited")),
        answer=AsyncMock(),
    )
    callback = SimpleNamespace(from_user=USER, inline_message_id=None, message=message)

    assert await global_error_handler(make_event(callback_query=callback), bot, translator) is True
    message.edit_text.assert_awaited_once_with(chat_text)
    message.answer.assert_awaited_once_with(chat_text)


async def test_chat_callback_on_deleted_message_stays_quiet(bot, translator):
    message = SimpleNamespace(
        edit_text=AsyncMock(side_effect=chat_edit_error("Bad Request: message to edit not found")),
        answer=AsyncMock(),
    )
    callback = SimpleNamespace(from_user=USER, inline_message_id=None, message=message)

    assert await global_error_handler(make_event(callback_query=callback), bot, translator) is True
    message.answer.assert_not_called()


async def test_inline_query_error_answers_with_article(bot, translator):
    query = SimpleNamespace(from_user=USER, answer=AsyncMock())

    assert await global_error_handler(make_event(inline_query=query), bot, translator) is True

    results = query.answer.call_args.args[0]
    assert [r.id for r in results] == ["bot_error"]
    assert results[0].title == translator.plain("en", "inline_error_general")
    assert query.answer.call_args.kwargs == {"cache_time": 5}


async def test_message_error_replies(bot, translator, chat_text):
    message = SimpleNamespace(from_user=USER, reply=AsyncMock(side_effect=chat_edit_error("Bad Request: chat not found")))

    # A failed notification is logged, never raised
    assert await global_error_handler(make_event(message=message), bot, translator) is True
    message.reply.assert_awaited_once_with(chat_text)
