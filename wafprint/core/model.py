"""
Core models for wafprint

Defines the rule catalog types and the normalized response signature
shared by the matcher, the evaluator and the detector.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

RULE_KINDS = ("headers", "content", "cookies", "reason", "status")


@dataclass(frozen=True)
class CompiledPattern:
    """A rule pattern compiled once at load time.

    `regex` is None when the source did not compile; matching then falls
    back to a case-sensitive substring test on `source`.
    """

    source: str
    regex: Optional[Pattern[str]] = None

    @property
    def is_literal(self) -> bool:
        return self.regex is None


@dataclass(frozen=True)
class HeaderNameMatcher:
    """Header name of a header rule, classified once as exact name or name pattern."""

    name: str
    pattern: Optional[CompiledPattern] = None

    @property
    def is_pattern(self) -> bool:
        return self.pattern is not None


@dataclass(frozen=True)
class PatternRule:
    pattern: CompiledPattern
    attack_required: bool = False
    header: Optional[HeaderNameMatcher] = None  # header rules only

    @property
    def match_target(self) -> str:
        return self.header.name if self.header else ""


@dataclass(frozen=True)
class StatusRule:
    code: int
    attack_required: bool = False


@dataclass(frozen=True)
class RuleGroup:
    """Optional rule sequences of one WAF entry or one helper function.

    An empty tuple means "no rule of that kind".
    """

    headers: Tuple[PatternRule, ...] = ()
    content: Tuple[PatternRule, ...] = ()
    cookies: Tuple[PatternRule, ...] = ()
    reason: Tuple[PatternRule, ...] = ()
    status: Tuple[StatusRule, ...] = ()
    helper_functions: Tuple["HelperFunction", ...] = ()

    @property
    def kinds(self) -> List[str]:
        names = [kind for kind in RULE_KINDS if getattr(self, kind)]
        if self.helper_functions:
            names.append("helper_functions")
        return names

    def direct_rules(self) -> Iterator[Tuple[str, Union[PatternRule, StatusRule]]]:
        """Yield (kind, rule) for the five direct kinds in catalog order."""
        for kind in RULE_KINDS:
            for rule in getattr(self, kind):
                yield kind, rule

    @property
    def attack_gated_count(self) -> int:
        return sum(1 for _, rule in self.direct_rules() if rule.attack_required)

    def pattern_rules(self) -> Iterator[Tuple[str, PatternRule]]:
        """Yield every pattern rule, including those nested in helper functions."""
        for kind, rule in self.direct_rules():
            if isinstance(rule, PatternRule):
                yield kind, rule
        for helper in self.helper_functions:
            for kind, rule in helper.rules.pattern_rules():
                yield f"helper_functions.{kind}", rule


@dataclass(frozen=True)
class HelperFunction:
    """Nested rule group evaluated with OR plus the two AND overrides."""

    rules: RuleGroup


@dataclass(frozen=True)
class WAFEntry:
    name: str
    vendor: str
    rules: RuleGroup


HeaderInput = Union[Mapping[str, Union[str, Iterable[str]]], Iterable[Tuple[str, str]], None]


@dataclass(frozen=True)
class ResponseSignature:
    """Normalized, case-insensitive view of one probe response.

    Note: header names are stored lower-cased and every header keeps all of
    its values, so repeated `Set-Cookie` lines are preserved.
    """

    status_code: int
    status_message: str
    headers: Mapping[str, Tuple[str, ...]]
    cookies: Mapping[str, str]
    body: str
    set_cookies: Tuple[str, ...] = field(default=())

    @classmethod
    def build(cls,
              status_code: object,
              status_message: Optional[str],
              headers: HeaderInput,
              body: Optional[str]) -> "ResponseSignature":
        """Build a signature from raw response parts without raising on malformed input."""
        try:
            code = int(status_code)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            code = 0

        collected: Dict[str, List[str]] = {}
        for name, value in _iter_header_pairs(headers):
            collected.setdefault(name.lower(), []).append(value)

        set_cookies = tuple(collected.get("set-cookie", ()))

        return cls(
            status_code=code,
            status_message=status_message or "",
            headers=MappingProxyType({k: tuple(v) for k, v in collected.items()}),
            cookies=MappingProxyType(extract_cookies(set_cookies)),
            body=body or "",
            set_cookies=set_cookies,
        )

    def get_header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup; repeated values are joined with ', '."""
        values = self.headers.get(name.lower())
        if values is None:
            return None
        return ", ".join(values)

    def iter_headers(self) -> Iterator[Tuple[str, str]]:
        for name, values in self.headers.items():
            yield name, ", ".join(values)


def _iter_header_pairs(headers: HeaderInput) -> Iterator[Tuple[str, str]]:
    if not headers:
        return
    items = headers.items() if isinstance(headers, Mapping) else headers
    for item in items:
        try:
            name, value = item
        except (TypeError, ValueError):
            continue
        if name is None:
            continue
        if isinstance(value, (list, tuple)):
            for single in value:
                yield str(name), "" if single is None else str(single)
        else:
            yield str(name), "" if value is None else str(value)


def extract_cookies(set_cookie_headers: Iterable[str]) -> Dict[str, str]:
    """Map cookie name to value from raw Set-Cookie lines.

    Only the part before the first ';' is used; it must hold exactly one
    '=' or the cookie is dropped.
    """
    cookies: Dict[str, str] = {}
    for raw in set_cookie_headers or ():
        parts = raw.split(";", 1)[0].split("=")
        if len(parts) == 2:
            cookies[parts[0].strip()] = parts[1].strip()
    return cookies
