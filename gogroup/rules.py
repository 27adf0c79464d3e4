"""Rules module for gogroup.

This module defines the group rules used to classify Go import paths and the
parser for the order specification given on the command line, e.g.
``std,prefix=github.com/me,other``.

Each rule is bound to an integer group; imports are ordered by ascending
group. Without any configuration, standard library paths come first (0),
then every other path (1), then aliased imports (2).
"""

from dataclasses import dataclass
import logging
import re
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

LOG = logging.getLogger(__name__)

STD = 'std'
NAMED = 'named'
OTHER = 'other'
PREFIX = 'prefix'
REGEXP = 'regexp'

DEFAULT_GROUPS = {STD: 0, OTHER: 1, NAMED: 2}
FIRST_CONFIGURED_GROUP = 3

_PREFIX_RE = re.compile(r'^prefix=(.*)$')
_REGEXP_RE = re.compile(r'^regexp=(.*)$')


class ConfigError(ValueError):
    """Raised when an order specification cannot be understood."""


class PatternError(ConfigError):
    """Raised when a ``regexp=`` rule holds an invalid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regular expression '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


@dataclass(frozen=True)
class GroupRule:
    """One configured rule: a kind, the group it assigns and its argument."""

    kind: str
    group: int
    value: str = ''

    def render(self) -> str:
        if self.kind in (PREFIX, REGEXP):
            return f"{self.kind}={self.value}"
        return self.kind


def _split_specs(specs: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(specs, str):
        specs = [specs]
    tokens: List[str] = []
    for spec in specs:
        tokens.extend(token.strip() for token in spec.split(','))
    return tokens


def parse_order_spec(specs: Union[str, Iterable[str]]) -> List[GroupRule]:
    """Parse one or more comma-separated order specifications.

    Several specifications are merged in order, so ``["std", "other"]`` and
    ``"std,other"`` are equivalent. Every token takes the next group number,
    starting after the reserved defaults.

    Raises:
        ConfigError: If a token is not recognized.
    """
    rules: List[GroupRule] = []
    next_group = FIRST_CONFIGURED_GROUP
    for token in _split_specs(specs):
        if token in (STD, NAMED, OTHER):
            rules.append(GroupRule(token, next_group))
        elif _PREFIX_RE.match(token):
            rules.append(GroupRule(PREFIX, next_group, _PREFIX_RE.match(token).group(1)))
        elif _REGEXP_RE.match(token):
            rules.append(GroupRule(REGEXP, next_group, _REGEXP_RE.match(token).group(1)))
        else:
            raise ConfigError(f"Unknown order specification '{token}'")
        next_group += 1
    return rules


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise PatternError(pattern, str(exc)) from exc


class Grouper:
    """Classify import paths into groups.

    A grouper is immutable once built; regular expressions are compiled up
    front so the same instance can be shared by every file of a run.
    """

    def __init__(self, rules: Optional[Iterable[GroupRule]] = None):
        self._rules: Tuple[GroupRule, ...] = tuple(rules or ())
        groups = dict(DEFAULT_GROUPS)
        for rule in self._rules:
            if rule.kind in groups:
                # Redeclaring std/named/other moves it; last one wins.
                groups[rule.kind] = rule.group
        self.std = groups[STD]
        self.other = groups[OTHER]
        self.named = groups[NAMED]
        self._regexps = [(rule.group, _compile(rule.value))
                         for rule in self._rules if rule.kind == REGEXP]
        self._prefixes = [(rule.group, rule.value)
                          for rule in self._rules if rule.kind == PREFIX]

    @classmethod
    def from_spec(cls, specs: Union[str, Iterable[str]]) -> "Grouper":
        """Build a grouper from order specification strings."""
        grouper = cls(parse_order_spec(specs))
        LOG.debug("Using import order %s", grouper.render())
        return grouper

    @property
    def rules(self) -> Tuple[GroupRule, ...]:
        return self._rules

    @property
    def was_set(self) -> bool:
        return bool(self._rules)

    def group(self, key: str) -> int:
        """Return the group of a classification key."""
        for group, pattern in self._regexps:
            if pattern.search(key):
                return group
        for group, prefix in self._prefixes:
            if key.startswith(prefix):
                return group

        # A dot distinguishes non-standard packages.
        if ' ' in key:
            return self.named
        if '.' in key:
            return self.other
        return self.std

    def classify(self, path: str, name: Optional[str] = None, named: bool = False) -> int:
        """Return the group of an import path, given its alias if any."""
        key = f"{name} {path}" if named else path
        return self.group(key)

    def render(self) -> str:
        """Return an order specification equivalent to this grouper."""
        entries = [(self.std, 0, STD), (self.named, 1, NAMED), (self.other, 2, OTHER)]
        for position, rule in enumerate(r for r in self._rules if r.kind in (PREFIX, REGEXP)):
            entries.append((rule.group, 3 + position, rule.render()))
        return ','.join(text for _, _, text in sorted(entries))

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Grouper({self.render()!r})"
