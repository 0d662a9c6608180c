"""Wordle-style per-token feedback on a submitted expression."""
import re
from typing import List, Sequence

from .math_normalizer import INVISIBLE_RE
from .schemas import TokenFeedback, TokenStatus

FORMATTING_COMMANDS = {"\\textcolor", "\\left", "\\right", "\\color", "\\colorbox", "\\mathcolor"}
COLOR_NAMES = {"green", "red", "gray", "grey", "yellow", "blue", "black", "white"}

# a minus after one of these starts a negative number
NEGATIVE_CONTEXT = set("+-*/^=({")


def tokenize_math(text: str) -> List[str]:
    """Split an expression into numbers, words, commands and operators.

    ``"35+7x"`` gives ``["35", "+", "7", "x"]``. Braces, whitespace, quotes and
    colour/formatting commands are dropped.
    """
    if not text or not text.strip():
        return []

    source = INVISIBLE_RE.sub("", text).replace('"', "")
    source = re.sub(r"\s+", "", source)

    tokens = []
    i = 0
    while i < len(source):
        ch = source[i]

        if ch == "\\":
            j = i + 1
            while j < len(source) and source[j].isascii() and source[j].isalpha():
                j += 1
            command = source[i:j]
            if command not in FORMATTING_COMMANDS:
                tokens.append(command)
            i = j
            continue

        if ch in "{}":
            i += 1
            continue

        if ch == "-":
            negative = i == 0 or source[i - 1] in NEGATIVE_CONTEXT
            if negative and i + 1 < len(source) and source[i + 1].isdigit():
                match = re.match(r"-[\d.]+", source[i:])
                tokens.append(match.group())
                i += len(match.group())
            else:
                tokens.append("-")
                i += 1
            continue

        if ch.isdigit():
            match = re.match(r"[\d.]+", source[i:])
            tokens.append(match.group())
            i += len(match.group())
            continue

        if ch.isascii() and ch.isalpha():
            match = re.match(r"[a-zA-Z]+", source[i:])
            word = match.group()
            if word.lower() not in COLOR_NAMES:
                tokens.append(word)
            i += len(word)
            continue

        tokens.append(ch)
        i += 1

    return tokens


def token_feedback(user_tokens: Sequence[str], expected_tokens: Sequence[str]) -> List[TokenFeedback]:
    """Mark each user token green, yellow, red or grey against the expected tokens.

    Green tokens sit at the same position. Yellow tokens appear elsewhere in the
    expected answer; each expected token can justify only one yellow. Red
    tokens are absent, grey ones are absent and past the expected length.
    """
    remaining = list(expected_tokens)
    statuses = []

    for i, token in enumerate(user_tokens):
        if i < len(expected_tokens) and token == expected_tokens[i]:
            statuses.append(TokenStatus.GREEN)
            remaining[i] = None
        else:
            statuses.append(None)

    for i, token in enumerate(user_tokens):
        if statuses[i] is not None:
            continue
        if token in remaining:
            statuses[i] = TokenStatus.YELLOW
            remaining[remaining.index(token)] = None
        elif i >= len(expected_tokens):
            statuses[i] = TokenStatus.GREY
        else:
            statuses[i] = TokenStatus.RED

    return [
        TokenFeedback(token=token, status=status, index=i)
        for i, (token, status) in enumerate(zip(user_tokens, statuses))
    ]


def is_incomplete_input(user_tokens: Sequence[str], expected_tokens: Sequence[str]) -> bool:
    return len(user_tokens) < len(expected_tokens)


def is_feedback_complete(feedback: Sequence[TokenFeedback], expected_length: int) -> bool:
    return len(feedback) == expected_length and all(f.status == TokenStatus.GREEN for f in feedback)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def token_feedback_hint(
    feedback: Sequence[TokenFeedback],
    user_tokens: Sequence[str],
    expected_tokens: Sequence[str],
) -> str:
    """One-sentence summary of the token feedback."""
    if is_incomplete_input(user_tokens, expected_tokens):
        missing = len(expected_tokens) - len(user_tokens)
        return f"Incomplete answer: {_plural(missing, 'more token')} needed"

    counts = {status: 0 for status in TokenStatus}
    for item in feedback:
        counts[item.status] += 1

    if counts[TokenStatus.GREY]:
        return f"Too many tokens: remove {_plural(counts[TokenStatus.GREY], 'extra token')}"
    if counts[TokenStatus.RED]:
        return f"{_plural(counts[TokenStatus.RED], 'wrong token')} - check your expression"
    if counts[TokenStatus.YELLOW]:
        yellow = counts[TokenStatus.YELLOW]
        verb = "tokens are" if yellow > 1 else "token is"
        return f"{yellow} {verb} in the wrong position"
    if counts[TokenStatus.GREEN] == len(expected_tokens):
        return "Perfect match!"
    return "Check your answer"
