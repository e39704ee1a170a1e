"""Request path normalization.

Rewrites raw request strings into canonical templates used as grouping keys.
The rules run in order, each one on the output of the previous rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RewriteRule:
    """A named global substitution."""

    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        """Apply the substitution to every match in text."""
        return self.pattern.sub(self.replacement, text)


QUERY_VALUES = RewriteRule(
    name="query_values",
    pattern=re.compile(r"([?&][^?&=]+)=[^&]*"),
    replacement=r"\1=:param",
)

UUID_SEGMENTS = RewriteRule(
    name="uuid_segments",
    pattern=re.compile(
        r"(?i)(?<=/)[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}(?=/|$)"
    ),
    replacement=":uuid",
)

NUMERIC_SEGMENTS = RewriteRule(
    name="numeric_segments",
    pattern=re.compile(r"(?<=/)\d+(?=/|$)"),
    replacement=":id",
)

# Catches a numeric segment glued to the query string ("/items/42?x=1"),
# which NUMERIC_SEGMENTS skips because "?" is not one of its boundaries.
NUMERIC_BEFORE_QUERY = RewriteRule(
    name="numeric_before_query",
    pattern=re.compile(r"(?<=/)\d+(?=[?&]|$)"),
    replacement=":id",
)

NORMALIZATION_RULES: tuple[RewriteRule, ...] = (
    QUERY_VALUES,
    UUID_SEGMENTS,
    NUMERIC_SEGMENTS,
    NUMERIC_BEFORE_QUERY,
)


def normalize(raw: str) -> str:
    """Return the canonical template for a raw request string."""
    text = raw
    for rule in NORMALIZATION_RULES:
        text = rule.apply(text)
    return text


def trace_normalization(raw: str) -> list[tuple[str, str]]:
    """Return (rule name, output) for every rule, in application order."""
    steps: list[tuple[str, str]] = []
    text = raw
    for rule in NORMALIZATION_RULES:
        text = rule.apply(text)
        steps.append((rule.name, text))
    return steps
