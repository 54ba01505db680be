import pytest

from symposium.service.chat.trigger import should_respond, strip_mention


@pytest.mark.parametrize(
    "message",
    ["@ai what is 2+2?", "hey @AI, thoughts?", "ping @Ai", "email me at x@aiden.io"],
)
def test_should_respond_on_mention(message):
    assert should_respond(message) is True


@pytest.mark.parametrize("message", ["", "hello everyone", "AI is neat", "@ a i"])
def test_should_not_respond_without_mention(message):
    assert should_respond(message) is False


def test_should_respond_handles_none():
    assert should_respond(None) is False


def test_strip_mention_removes_every_occurrence():
    assert strip_mention("@AI what is 2+2?") == "what is 2+2?"
    assert strip_mention("  tell me @ai and @Ai again ") == "tell me  and  again"
    assert strip_mention("@ai") == ""
