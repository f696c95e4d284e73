"""Condition-rule codec.

A condition rule is a ``&``-separated list of clauses, each of the form
``key = v1,v2`` (values that must match) or ``key != v3`` (values that
must not match)::

    consumer.host = 10.0.0.1,10.0.0.2 & consumer.host != 10.0.0.9

``decode`` turns the text into an ordered ``{key: MatchPair}`` mapping and
``encode`` turns it back. Values are percent-encoded on the way out so
separators inside a value survive a round trip.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import quote, unquote

# separator run, then one token
_TOKEN = re.compile(r"\s*([&!=,]*)\s*([^&!=,\s]+)")

# Characters left readable in encoded values (host wildcards, IPv6, CIDR)
_SAFE_CHARS = "*:/[]@"


class ParseError(Exception):
    """Raised when a condition-rule string violates the grammar."""

    def __init__(self, message: str, index: int = 0):
        self.index = index
        super().__init__(message)


@dataclass
class MatchPair:
    """Values a clause key must match, and values it must not match."""

    matches: set[str] = field(default_factory=set)
    unmatches: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.matches and not self.unmatches

    def discard_all(self, values: set[str]) -> None:
        """Drop *values* from both sets."""
        self.matches -= values
        self.unmatches -= values


def _illegal(rule: str, char: str, index: int, content: str) -> ParseError:
    return ParseError(
        f'Illegal route rule "{rule}", the error char \'{char}\' at index {index} '
        f'before "{content}".',
        index,
    )


def decode(rule: str | None) -> dict[str, MatchPair]:
    """Parse *rule* into an ordered mapping of clause key to MatchPair.

    Repeated keys accumulate into one MatchPair. Blank input yields ``{}``.
    Raises ParseError on malformed input.
    """
    condition: dict[str, MatchPair] = {}
    if rule is None or not rule.strip():
        return condition

    key: str | None = None
    pair: MatchPair | None = None
    values: set[str] | None = None

    end = len(rule.rstrip())
    pos = 0
    while pos < end:
        match = _TOKEN.match(rule, pos)
        if match is None:
            dangling = rule[pos:end].strip()
            raise ParseError(
                f'Illegal route rule "{rule}", dangling "{dangling}" at index {pos} '
                "with no value after it.",
                pos,
            )
        separator, content = match.group(1), match.group(2)
        index = match.start(1)
        pos = match.end()

        if separator == "":
            if pair is not None:
                raise ParseError(
                    f'Illegal route rule "{rule}", missing \'&\' at index {index} '
                    f'before "{content}".',
                    index,
                )
            key, pair, values = content, condition.setdefault(content, MatchPair()), None
        elif separator == "&":
            if pair is None:
                raise _illegal(rule, separator, index, content)
            if values is None:
                raise ParseError(
                    f'Illegal route rule "{rule}", clause "{key}" has no operator.', index
                )
            key, pair, values = content, condition.setdefault(content, MatchPair()), None
        elif separator == "=":
            if pair is None:
                raise _illegal(rule, separator, index, content)
            values = pair.matches
            values.add(unquote(content))
        elif separator == "!=":
            if pair is None:
                raise _illegal(rule, separator, index, content)
            values = pair.unmatches
            values.add(unquote(content))
        elif separator == ",":
            if not values:
                raise _illegal(rule, separator, index, content)
            values.add(unquote(content))
        else:
            raise _illegal(rule, separator, index, content)

    if values is None:
        raise ParseError(f'Illegal route rule "{rule}", clause "{key}" has no operator.', end)
    return condition


def _join(values: set[str]) -> str:
    return ",".join(quote(v, safe=_SAFE_CHARS) for v in sorted(values) if v)


def encode(rule: dict[str, MatchPair], out: list[str] | None = None) -> str:
    """Serialize *rule* back to text, appending it to *out* when given.

    Keys keep the mapping's order; values within a set are sorted. Empty
    values and empty sets are left out, and a key with nothing in either
    set disappears.
    """
    clauses = []
    for key, pair in rule.items():
        matches = _join(pair.matches)
        if matches:
            clauses.append(f"{key}={matches}")
        unmatches = _join(pair.unmatches)
        if unmatches:
            clauses.append(f"{key}!={unmatches}")
    text = "&".join(clauses)
    if out is not None:
        out.append(text)
    return text
