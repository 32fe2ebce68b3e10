"""Tests for the Telegram bot host."""

import asyncio
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from orthodox_daily.bot import CONTINUE_WORDS, DECLINE_WORDS, OrthodoxDailyBot
from orthodox_daily.config import Config
from orthodox_daily.delivery import DeliveryStateMachine, Signal, Turn
from orthodox_daily.exceptions import LectionaryError


def make_update(text=None):
    message = MagicMock()
    message.text = text
    message.reply_text = AsyncMock()
    return SimpleNamespace(message=message, effective_user=SimpleNamespace(id=42))


def make_context(user_data=None, args=None):
    return SimpleNamespace(
        user_data={} if user_data is None else user_data, args=args or []
    )


@pytest.fixture
def lectionary(lectionary_for, three_reading_day):
    return lectionary_for(three_reading_day)


@pytest.fixture
def bot(lectionary, example_budget):
    config = Config(telegram_bot_token="123456:test-token")
    return OrthodoxDailyBot(config, DeliveryStateMachine(lectionary, example_budget))


@pytest.mark.parametrize("text", ["yes", "Yes!", "next", " continue ", "go on"])
def test_continue_words(text):
    assert CONTINUE_WORDS.match(text)


@pytest.mark.parametrize("text", ["no", "No.", "no thanks"])
def test_decline_words(text):
    assert DECLINE_WORDS.match(text)


def test_free_text_is_not_a_signal():
    assert not CONTINUE_WORDS.match("yesterday's readings")
    assert not DECLINE_WORDS.match("nothing")


class TestRunTurn:
    def test_stores_cursor_in_user_data(self, bot):
        user_data = {}
        bot.run_turn(Turn(Signal.SCRIPTURES, "2026-10-19"), user_data)
        assert user_data == {
            "original_intent": "Scriptures",
            "date": "2026-10-19",
            "next_reading": 1,
        }

        bot.run_turn(Turn(Signal.CONTINUE), user_data)
        assert user_data["next_verse"] == 6
        assert user_data["group_size"] == 6

    def test_clears_user_data_at_end(self, bot):
        user_data = {
            "original_intent": "Scriptures",
            "date": "2026-10-19",
            "next_reading": 2,
        }
        result = bot.run_turn(Turn(Signal.CONTINUE), user_data)
        assert result.end_session is True
        assert user_data == {}

    def test_continue_without_session(self, bot, lectionary):
        user_data = {"unrelated": True}
        result = bot.run_turn(Turn(Signal.CONTINUE), user_data)
        assert "not sure what you mean" in result.speech
        assert user_data == {}
        lectionary.get_day.assert_not_called()

    @pytest.mark.parametrize(
        "turn",
        [
            Turn(Signal.STOP),
            Turn(Signal.CANCEL),
            Turn(Signal.SCRIPTURES, "20261019"),
        ],
    )
    def test_unparsed_user_data_is_left_alone(self, bot, lectionary, turn):
        user_data = {
            "original_intent": "Scriptures",
            "date": "2026-10-19",
            "next_reading": "1",
        }
        bot.run_turn(turn, user_data)
        assert user_data == {
            "original_intent": "Scriptures",
            "date": "2026-10-19",
            "next_reading": "1",
        }
        lectionary.get_day.assert_not_called()

    def test_lectionary_failure_keeps_user_data(self, bot, lectionary):
        lectionary.get_day.side_effect = LectionaryError("down")
        user_data = {"original_intent": "Launch", "date": "2026-10-19"}
        result = bot.run_turn(Turn(Signal.CONTINUE), user_data)
        assert "couldn't load the readings" in result.speech
        assert user_data == {"original_intent": "Launch", "date": "2026-10-19"}


class TestHandlers:
    def test_start_replies_with_plain_text(self, bot):
        update, context = make_update("/start"), make_context()
        asyncio.run(bot.start_command(update, context))

        text = update.message.reply_text.call_args.args[0]
        assert "There are 3 scripture readings." in text
        assert "<" not in text
        assert context.user_data["original_intent"] == "Launch"

    def test_readings_takes_date_argument(self, bot, lectionary):
        update = make_update("/readings 2026-10-19")
        context = make_context(args=["2026-10-19"])
        asyncio.run(bot.readings_command(update, context))

        lectionary.get_day.assert_called_once_with(date(2026, 10, 19))
        text = update.message.reply_text.call_args.args[0]
        assert "There are 3 readings for Monday, October 19." in text
        assert "R0V00" in text

    def test_yes_continues_session(self, bot):
        context = make_context(
            {"original_intent": "Scriptures", "date": "2026-10-19", "next_reading": 2}
        )
        update = make_update("yes")
        asyncio.run(bot.text_message(update, context))

        text = update.message.reply_text.call_args.args[0]
        assert "R2V00" in text
        assert "That is the end of the readings." in text
        assert context.user_data == {}

    def test_no_declines_silently(self, bot):
        context = make_context(
            {"original_intent": "Scriptures", "date": "2026-10-19", "next_reading": 1}
        )
        update = make_update("no")
        asyncio.run(bot.text_message(update, context))

        update.message.reply_text.assert_not_called()
        assert context.user_data == {}

    def test_free_text_is_ignored(self, bot, lectionary):
        context = make_context({"original_intent": "Launch", "date": "2026-10-19"})
        update = make_update("what is a prokeimenon?")
        asyncio.run(bot.text_message(update, context))

        update.message.reply_text.assert_not_called()
        assert context.user_data["original_intent"] == "Launch"
        lectionary.get_day.assert_not_called()

    def test_stop_keeps_cursor(self, bot):
        user_data = {
            "original_intent": "Scriptures",
            "date": "2026-10-19",
            "next_reading": 1,
        }
        context = make_context(dict(user_data))
        update = make_update("/stop")
        asyncio.run(bot.stop_command(update, context))

        update.message.reply_text.assert_not_called()
        assert context.user_data == user_data

    def test_help(self, bot):
        update, context = make_update("/help"), make_context()
        asyncio.run(bot.help_command(update, context))
        text = update.message.reply_text.call_args.args[0]
        assert "read the scriptures" in text

    def test_no_message_is_ignored(self, bot, lectionary):
        update = SimpleNamespace(message=None, effective_user=None)
        asyncio.run(bot.start_command(update, make_context()))
        lectionary.get_day.assert_not_called()


def test_build_app_requires_token(lectionary):
    bot = OrthodoxDailyBot(Config(), DeliveryStateMachine(lectionary))
    with pytest.raises(ValueError, match="TELEGRAM_BOT_TOKEN"):
        bot.build_app()


def test_default_delivery_uses_telegram_budget():
    bot = OrthodoxDailyBot(Config(telegram_max_length=3500))
    assert bot.delivery.budget.max_length == 3500
