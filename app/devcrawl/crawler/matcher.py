"""Device matchers.

The crawler only needs two operations from a matcher: ``compile()``,
called once before the crawl starts, and ``evaluate_env()``, called once
per candidate device with its uevent attributes. Any object providing
both satisfies the Matcher protocol.

RuleDefinitions is the bundled implementation: a list of rules, each
mapping attribute keys to regular expressions. A device matches a rule
when every key is present and its pattern is found in the value; it
matches the definitions when any rule matches.
"""

import re
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from devcrawl.crawler.errors import MatcherCompileError


@runtime_checkable
class Matcher(Protocol):
    """Predicate evaluated against device attributes."""

    def compile(self) -> None:
        """Prepare the matcher for evaluation.

        Raises:
            MatcherCompileError: If the matcher definition is invalid.
        """
        ...

    def evaluate_env(self, env: Mapping[str, str]) -> bool:
        """Return True if a device with these attributes should be reported."""
        ...


class RuleDefinition(BaseModel):
    """A single match rule: every listed attribute must match its pattern.

    Attributes:
        env: Mapping of attribute key (e.g. 'SUBSYSTEM') to regular expression.
    """

    model_config = ConfigDict(extra="forbid")

    env: dict[str, str] = Field(default_factory=dict)

    _compiled: dict[str, re.Pattern[str]] | None = PrivateAttr(default=None)

    def compile(self) -> None:
        """Compile every pattern of the rule.

        Raises:
            MatcherCompileError: If a pattern is not a valid regular expression.
        """
        compiled: dict[str, re.Pattern[str]] = {}
        for key, pattern in self.env.items():
            try:
                compiled[key] = re.compile(pattern)
            except re.error as e:
                msg = f"Invalid pattern for {key}: {pattern!r} ({e})"
                raise MatcherCompileError(msg) from e
        self._compiled = compiled

    def evaluate_env(self, env: Mapping[str, str]) -> bool:
        """Check whether all patterns of the rule match the given attributes.

        Raises:
            RuntimeError: If the rule has not been compiled.
        """
        if self._compiled is None:
            msg = "RuleDefinition must be compiled before evaluation"
            raise RuntimeError(msg)

        for key, pattern in self._compiled.items():
            value = env.get(key)
            if value is None or pattern.search(value) is None:
                return False
        return True


class RuleDefinitions(BaseModel):
    """A set of rules combined with OR.

    An empty set matches nothing; pass no matcher at all to report
    every device.
    """

    model_config = ConfigDict(extra="forbid")

    rules: list[RuleDefinition] = Field(default_factory=list)

    def add_rule(self, rule: RuleDefinition) -> None:
        """Append a rule. Call compile() again before evaluating."""
        self.rules.append(rule)

    def compile(self) -> None:
        """Compile all rules.

        Raises:
            MatcherCompileError: If any rule contains an invalid pattern.
        """
        for rule in self.rules:
            rule.compile()

    def evaluate_env(self, env: Mapping[str, str]) -> bool:
        """Return True if any rule matches the given attributes."""
        return any(rule.evaluate_env(env) for rule in self.rules)


def parse_match_expression(expression: str) -> tuple[str, str]:
    """Split a ``KEY=REGEX`` command line expression.

    Args:
        expression: Expression such as 'SUBSYSTEM=^block$'.

    Returns:
        Tuple of (key, pattern).

    Raises:
        ValueError: If the expression has no '=' or an empty key.
    """
    key, sep, pattern = expression.partition("=")
    key = key.strip()
    if not sep or not key:
        msg = f"Invalid match expression {expression!r}, expected KEY=REGEX"
        raise ValueError(msg)
    return key, pattern
