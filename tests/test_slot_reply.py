"""Tests for classifying replies to a suggested slot."""

import pytest

from app.nlu.slot_reply import (
    SlotDecision,
    SlotReply,
    SlotReplyClassifier,
    classify_slot_reply,
    normalize_utterance,
)

SLOT = "3:00 PM"


@pytest.fixture
def classifier():
    return SlotReplyClassifier()


class TestRejection:
    @pytest.mark.parametrize("text", [
        "No, that doesn't work",
        "That doesnt work for me",
        "Nope.",
        "nah",
        "I'm not available then",
        "that's too early",
        "not good",
        "I'm busy at that time",
    ])
    def test_rejects(self, classifier, text):
        assert classifier.classify(text, SLOT).decision == SlotDecision.REJECTED

    def test_rejection_beats_acceptance_words(self, classifier):
        # "good" alone would accept
        assert classifier.classify("that's not good", SLOT) == SlotReply(SlotDecision.REJECTED)

    def test_rejection_carries_alternative(self, classifier):
        reply = classifier.classify("That doesn't work, but how about 4pm?", SLOT)
        assert reply == SlotReply(SlotDecision.REJECTED, "4:00 PM")

    def test_alternative_with_prefer(self, classifier):
        reply = classifier.classify("I'm busy then, I'd prefer 10:30 am", SLOT)
        assert reply == SlotReply(SlotDecision.REJECTED, "10:30 AM")

    def test_no_opener_must_be_a_whole_word(self, classifier):
        assert not classifier.is_rejection("nothing else to add")

    @pytest.mark.parametrize("text", ["no problem, that works", "No worries, sounds good"])
    def test_no_idioms_are_not_rejections(self, classifier, text):
        assert not classifier.is_rejection(text)
        assert classifier.classify(text, SLOT).decision == SlotDecision.ACCEPTED


class TestBusy:
    def test_busy_rejects(self, classifier):
        assert classifier.is_busy_rejection("I'm busy")

    @pytest.mark.parametrize("text", ["I won't be busy", "I'm not busy then", "I will not be busy"])
    def test_negated_busy_does_not_reject(self, classifier, text):
        assert not classifier.is_busy_rejection(text)


class TestAcceptance:
    @pytest.mark.parametrize("text", ["yes", "Yeah that works", "Sounds good!", "ok", "perfect"])
    def test_accepts_suggested_slot(self, classifier, text):
        assert classifier.classify(text, SLOT) == SlotReply(SlotDecision.ACCEPTED, SLOT)

    def test_acceptance_needs_a_suggestion(self, classifier):
        assert classifier.classify("yes", None).decision == SlotDecision.NO_MATCH


class TestBareTime:
    def test_time_without_suggestion(self, classifier):
        assert classifier.classify("3pm works", None) == SlotReply(SlotDecision.TIME, "3:00 PM")

    def test_time_near_negative_word_is_ignored(self, classifier):
        assert classifier.classify("3pm is bad for me", None).decision == SlotDecision.NO_MATCH

    def test_no_match(self, classifier):
        assert classifier.classify("let me think about it", None).decision == SlotDecision.NO_MATCH

    def test_empty(self, classifier):
        assert classifier.classify("   ", SLOT).decision == SlotDecision.NO_MATCH


class TestModuleHelpers:
    def test_normalize_utterance(self):
        assert normalize_utterance("  That  DOESN’T   work ") == "that doesn't work"

    def test_classify_slot_reply_uses_default_vocabulary(self):
        assert classify_slot_reply("yep", SLOT).decision == SlotDecision.ACCEPTED
