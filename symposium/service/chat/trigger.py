import re

MENTION = "@ai"
MENTION_RE = re.compile(re.escape(MENTION), re.IGNORECASE)


def should_respond(message: str) -> bool:
    """
    True when the raw text mentions the assistant anywhere, in any case.
    Plain substring match: "@aiden" also triggers.
    """
    return MENTION in (message or "").lower()


def strip_mention(message: str) -> str:
    return MENTION_RE.sub("", message or "").strip()
