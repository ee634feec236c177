"""
Unit tests for the deterministic fallbacks: demo avatar library and canned
tutor replies.
"""
import pytest

from tutor.services.demo_videos import DemoVideoLibrary, estimate_talk_seconds
from tutor.services.providers.base import ChatTurn
from tutor.services.providers.canned_replies import canned_reply


class TestTalkDuration:

    @pytest.mark.parametrize(
        "length, seconds",
        [(2, 3), (0, 3), (30, 3), (31, 4), (100, 10), (101, 11), (300, 30), (1000, 30)],
    )
    def test_clamped_ceiling_of_length_over_ten(self, length, seconds):
        assert estimate_talk_seconds("x" * length) == seconds

    def test_hi_is_three_seconds(self):
        assert estimate_talk_seconds("hi") == 3


class TestDemoVideoLibrary:

    def test_lookup_is_case_insensitive(self):
        lib = DemoVideoLibrary()
        assert lib.get_demo_video("SARAH") == lib.get_demo_video("sarah")
        assert lib.get_demo_video("sarah") != lib.get_demo_video("john")

    def test_unknown_tutor_defaults_to_john(self):
        lib = DemoVideoLibrary()
        assert lib.get_demo_video("Professor X") == lib.get_demo_video("john")

    def test_talking_response_sets_duration_and_live(self):
        clip = DemoVideoLibrary().generate_talking_response("Emma", "x" * 100)
        assert clip.duration == 10
        assert clip.is_live is True
        assert clip.video_url == DemoVideoLibrary().get_demo_video("emma").video_url

    def test_catalogue(self):
        lib = DemoVideoLibrary()
        assert [t["name"] for t in lib.available_tutors()] == ["John", "Sarah", "Mike", "Emma"]
        assert lib.is_catalogue_tutor("Mike") is True
        assert lib.is_catalogue_tutor("Sam") is False


class TestCannedReplies:

    def test_empty_history_gets_opening_line(self):
        assert canned_reply([], "Ana", "Sam") == "Hello Ana! I'm Sam, your AI tutor. How can I help you today?"

    def test_last_message_from_ai_gets_opening_line(self):
        reply = canned_reply([ChatTurn("user", "math"), ChatTurn("ai", "ok")], "Ana", "Sam")
        assert reply.startswith("Hello Ana! I'm Sam")

    def test_hello_greeting(self):
        reply = canned_reply([ChatTurn("user", "Hello")], "Ana", "Sam")
        assert reply == "Hello Ana! Great to see you! What would you like to learn about today?"

    def test_greeting_beats_later_keywords(self):
        # "hi" matches as a substring of "this"
        reply = canned_reply([ChatTurn("user", "this math problem")], "Ana", "Sam")
        assert reply.startswith("Hello Ana! Great to see you!")

    @pytest.mark.parametrize(
        "text, prefix",
        [
            ("I need mathematics", "Mathematics is a fascinating subject, Ana!"),
            ("science class", "Science is all about understanding"),
            ("thank you", "You're very welcome, Ana!"),
            ("can you help", "Of course, Ana!"),
            ("quantum zebra", "That's an interesting question, Ana!"),
        ],
    )
    def test_keyword_rules(self, text, prefix):
        assert canned_reply([ChatTurn("user", text)], "Ana", "Sam").startswith(prefix)

    def test_deterministic(self):
        history = [ChatTurn("user", "science")]
        assert canned_reply(history, "Ana", "Sam") == canned_reply(history, "Ana", "Sam")
