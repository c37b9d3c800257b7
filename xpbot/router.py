"""Command classification.

`classify()` turns the raw text of a message into one of the command values
below. It never looks at the sender or the chat; handlers decide what a
command means for them.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class NotACommand:
    pass


@dataclass(frozen=True)
class XPQuery:
    """`/xp [username]`. target is None when the sender asks for themselves."""
    target: Optional[str] = None


@dataclass(frozen=True)
class GiveXP:
    """`/givexp <username> <amount>`. amount is the raw token, parsed by the handler."""
    target: str
    amount: str


@dataclass(frozen=True)
class GiveXPUsage:
    """`/givexp` with the wrong number of arguments."""


@dataclass(frozen=True)
class Ranks:
    pass


@dataclass(frozen=True)
class Start:
    pass


Command = Union[NotACommand, XPQuery, GiveXP, GiveXPUsage, Ranks, Start]


def is_command(text: str, prefix: str) -> bool:
    """Check whether text invokes the command `prefix`.

    The prefix must be followed by the end of the text, a space or an
    `@botname` mention: "/xp", "/xp bob" and "/xp@bot" match, "/xpfoo" doesn't.
    """
    if text == prefix:
        return True
    return text.startswith(prefix) and text[len(prefix)] in (" ", "@")


def strip_mention(username: str) -> str:
    """Drop the leading @ from a username."""
    return username[1:] if username.startswith("@") else username


def classify(text: Optional[str]) -> Command:
    """Classify a message text."""
    if not text:
        return NotACommand()

    if is_command(text, "/xp"):
        args = text.split()[1:]
        if not args:
            return XPQuery()
        target = strip_mention(args[0])
        return XPQuery(target or None)

    if is_command(text, "/givexp"):
        parts = text.split()
        if len(parts) != 3 or not strip_mention(parts[1]):
            return GiveXPUsage()
        return GiveXP(target=strip_mention(parts[1]), amount=parts[2])

    if is_command(text, "/ranks"):
        return Ranks()

    if is_command(text, "/start"):
        return Start()

    return NotACommand()
