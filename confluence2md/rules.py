"""Ordered rewrite rules and the runner that applies them.

A rewrite pass is a tuple of :class:`RewriteRule` objects applied strictly in
order; later rules rely on the simplifications made by earlier ones.  Rules
are plain values so each one can be exercised on its own in tests::

    from confluence2md.rules import RewriteRule, run_rules

    rules = (
        RewriteRule.regex("drop-style", r'(?<!\\s)\\s+style="[^"]*"', ""),
        RewriteRule.literal_text("nbsp", "&nbsp;", " "),
    )
    run_rules('<p style="x">a&nbsp;b</p>', rules)   # '<p>a b</p>'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

Replacement = str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class RewriteRule:
    """One named rewrite step.

    Exactly one of *pattern*, *literal* or *func* is set:

    - *pattern*: compiled regex, replaced by *replacement* (a template string
      or a callable receiving the match).
    - *literal*: plain substring, replaced by *replacement* via ``str.replace``.
    - *func*: an arbitrary ``str -> str`` pass for steps that scan instead of
      matching (counting, balancing).
    """

    name: str
    pattern: re.Pattern[str] | None = None
    replacement: Replacement = ""
    literal: str | None = None
    func: Callable[[str], str] | None = None
    count: int = 0

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def regex(
        cls,
        name: str,
        pattern: str | re.Pattern[str],
        replacement: Replacement = "",
        flags: int = 0,
        count: int = 0,
    ) -> RewriteRule:
        compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        return cls(name=name, pattern=compiled, replacement=replacement, count=count)

    @classmethod
    def literal_text(cls, name: str, text: str, replacement: str = "") -> RewriteRule:
        return cls(name=name, literal=text, replacement=replacement)

    @classmethod
    def function(cls, name: str, func: Callable[[str], str]) -> RewriteRule:
        return cls(name=name, func=func)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply(self, text: str) -> str:
        if self.func is not None:
            return self.func(text)
        if self.literal is not None:
            if not self.literal:
                return text
            return text.replace(self.literal, str(self.replacement))
        if self.pattern is None:
            return text
        return self.pattern.sub(self.replacement, text, count=self.count)


def literal_rules(prefix: str, table: Mapping[str, str]) -> tuple[RewriteRule, ...]:
    """Build one literal rule per *table* entry, named ``prefix:key``."""
    return tuple(
        RewriteRule.literal_text(f"{prefix}:{key}", key, value) for key, value in table.items()
    )


def run_rules(text: str, rules: Iterable[RewriteRule]) -> str:
    """Apply *rules* to *text* in order and return the result."""
    for rule in rules:
        text = rule.apply(text)
    return text


def find_rule(rules: Iterable[RewriteRule], name: str) -> RewriteRule:
    """Return the rule called *name*; raise ``KeyError`` if there is none."""
    for rule in rules:
        if rule.name == name:
            return rule
    raise KeyError(name)
