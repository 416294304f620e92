"""Tests for confirmation reply classification."""

import pytest

from agents.confirmation import ReplyClassifier, ReplyIntent, classify_reply


class TestReplyClassifier:
    """Test how replies to "Would you like me to proceed?" are read."""

    @pytest.mark.parametrize("reply", [
        "yes",
        "Yes!",
        "ok",
        "go ahead",
        "Sounds good, do it",
        "yes please",
        "sí",
        "oui",
        "ja",
        "haan",
        "हाँ",
        "はい",
        "好的",
    ])
    def test_affirmations(self, reply):
        assert classify_reply(reply) == ReplyIntent.AFFIRM

    @pytest.mark.parametrize("reply", [
        "no",
        "No thanks",
        "cancel",
        "don't do that",
        "not yet",
        "nein",
        "non",
        "नहीं",
        "取消",
        "yes no",
    ])
    def test_negations(self, reply):
        assert classify_reply(reply) == ReplyIntent.NEGATE

    @pytest.mark.parametrize("reply", [
        "",
        "maybe",
        "yes but change the time to 5pm",
        "ok, except the florist",
        "what's the total?",
        "Add Anita to the wedding",
        "yes please add the florist too and also update the venue budget",
        "How many guests have not replied yet?",
        "Don't forget to add the florist to the vendor list",
    ])
    def test_unclear_never_confirms(self, reply):
        assert classify_reply(reply) == ReplyIntent.UNCLEAR

    def test_phrases_match_whole_words(self):
        """Test "no" inside another word is not a negation."""
        assert classify_reply("know") == ReplyIntent.UNCLEAR
        assert classify_reply("okay now") == ReplyIntent.AFFIRM

    def test_custom_phrase_lists(self):
        classifier = ReplyClassifier(affirmative=["aye"], negative=["nay"], qualifiers=[])

        assert classifier.classify("aye") == ReplyIntent.AFFIRM
        assert classifier.classify("nay") == ReplyIntent.NEGATE
        assert classifier.classify("yes") == ReplyIntent.UNCLEAR

    def test_negation_inside_a_new_request_is_not_a_rejection(self):
        """Test a long utterance that happens to contain "not" is read as a new request."""
        assert classify_reply("How many guests have not replied yet?") == ReplyIntent.UNCLEAR
        assert classify_reply("No, not now") == ReplyIntent.NEGATE
