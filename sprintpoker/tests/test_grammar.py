"""
Tests for vote and estimate parsing, and chat command parsing.
"""

import pytest

from ..bot.commands import extract_mentions, parse_command, strip_mention
from ..engine_core.grammar import is_vote, parse_estimate, parse_vote
from ..engine_core.state import COFFEE, INFINITY
from ..errors import InvalidEstimateError, InvalidVoteError
from ..providers.tasks import parse_tasklist_reference, split_hours


class TestVoteGrammar:
    """Tests for parse_vote."""

    @pytest.mark.parametrize("text,expected", [
        ("5", 5.0),
        ("  8", 8.0),
        ("2.5", 2.5),
        ("13 because of the migration", 13.0),
        ("0", 0.0),
    ])
    def test_numbers(self, text, expected):
        assert parse_vote(text) == expected

    def test_sentinels(self):
        assert parse_vote("coffee") == COFFEE
        assert parse_vote("infinity") == INFINITY

    @pytest.mark.parametrize("text", ["", "abc", "-3", ".5", "five", "Coffee"])
    def test_rejected(self, text):
        with pytest.raises(InvalidVoteError):
            parse_vote(text)

    def test_is_vote(self):
        assert is_vote("3")
        assert is_vote("coffee break")
        assert not is_vote("hello")


class TestEstimateGrammar:
    """Tests for parse_estimate."""

    def test_number(self):
        assert parse_estimate("10") == 10.0
        assert parse_estimate(" 2.5 hours") == 2.5

    @pytest.mark.parametrize("text", ["", "ten", "-1", "nan", "inf"])
    def test_rejected(self, text):
        with pytest.raises(InvalidEstimateError):
            parse_estimate(text)

    def test_error_code(self):
        with pytest.raises(InvalidEstimateError) as exc:
            parse_estimate("x")
        assert exc.value.error_code == "INVALID_ESTIMATE"


class TestTasklistReference:
    """Tests for tasklist URL parsing."""

    @pytest.mark.parametrize("url", [
        "https://acme.teamwork.com/index.cfm#tasklists/457357",
        "https://acme.teamwork.com/#/tasklists/457357",
        "acme.teamwork.com/tasklists/457357",
        "please plan https://acme.teamwork.com/tasklists/457357 thanks",
    ])
    def test_accepted(self, url):
        ref = parse_tasklist_reference(url)

        assert ref is not None
        assert ref.installation == "acme"
        assert ref.id == "457357"

    @pytest.mark.parametrize("text", ["", "457357", "https://example.com/tasklists/1"])
    def test_rejected(self, text):
        assert parse_tasklist_reference(text) is None

    def test_split_hours(self):
        assert split_hours(2.5) == (2, 30)
        assert split_hours(0.25) == (0, 15)
        assert split_hours(3) == (3, 0)


class TestCommandParsing:
    """Tests for chat command parsing."""

    def test_room_command_needs_mention(self):
        assert parse_command("vote 5", "bot") is None

        parsed = parse_command("@bot vote 5", "bot")
        assert parsed.name == "vote"
        assert parsed.argument == "5"

    def test_mention_with_punctuation(self):
        assert parse_command("@bot: start", "bot").name == "start"
        assert parse_command("@Bot, status", "bot").name == "status"

    def test_mention_must_match_handle(self):
        assert parse_command("@botty start", "bot") is None

    def test_poker_command(self):
        parsed = parse_command("@bot poker @bob @carol", "bot")

        assert parsed.name == "poker"
        assert parsed.command_name is None
        assert extract_mentions(parsed.argument) == ["bob", "carol"]

    def test_private_without_mention(self):
        assert parse_command("estimate 3", "bot", private=True).name == "estimate"
        assert parse_command("@bot skip", "bot", private=True).name == "skip"

    def test_private_bare_vote(self):
        parsed = parse_command("8", "bot", private=True)

        assert parsed.name == "vote"
        assert parsed.argument == "8"

    def test_room_bare_vote_ignored(self):
        assert parse_command("@bot 8", "bot") is None

    def test_unknown_command(self):
        assert parse_command("@bot dance", "bot") is None
        assert parse_command("hello there", "bot", private=True) is None

    def test_strip_mention(self):
        assert strip_mention("@bot   start", "bot") == "start"
        assert strip_mention("start", "bot") is None

    def test_extract_mentions_dedup_and_exclude(self):
        mentions = extract_mentions("@bot poker @bob @carol @bob", exclude=("bot",))

        assert mentions == ["bob", "carol"]
