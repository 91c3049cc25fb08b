"""
Pattern matching and per-kind rule checks.

Patterns are compiled case-insensitively. A pattern that is not a valid
regular expression is kept as a literal and matched by case-sensitive
substring containment, so a broken catalog entry degrades to a weaker
check instead of aborting detection.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Callable, Dict, Optional, Union

from .model import CompiledPattern, HeaderNameMatcher, PatternRule, ResponseSignature, StatusRule

logger = logging.getLogger(__name__)

# Characters that mark a header rule name as a header-name pattern
HEADER_NAME_METACHARS = ("[", "(")


@functools.lru_cache(maxsize=None)
def compile_pattern(source: str) -> CompiledPattern:
    """Compile a rule pattern once, falling back to a literal on re.error."""
    try:
        return CompiledPattern(source=source, regex=re.compile(source, re.IGNORECASE))
    except re.error as e:
        logger.debug(f"Pattern {source!r} is not a valid regex ({e}), using literal match")
        return CompiledPattern(source=source, regex=None)


def classify_header_name(name: str) -> HeaderNameMatcher:
    if any(ch in name for ch in HEADER_NAME_METACHARS):
        return HeaderNameMatcher(name=name, pattern=compile_pattern(name))
    return HeaderNameMatcher(name=name)


def matches(text: Optional[str], pattern: Union[CompiledPattern, str]) -> bool:
    """Return True if `pattern` is found in `text`. Empty text never matches."""
    if not text:
        return False
    if isinstance(pattern, str):
        pattern = compile_pattern(pattern)
    if pattern.regex is not None:
        return pattern.regex.search(text) is not None
    return pattern.source in text


def check_header_rule(response: ResponseSignature, rule: PatternRule) -> bool:
    value = response.get_header(rule.match_target)
    if not value:
        header = rule.header
        if header is not None and header.is_pattern:
            for name, header_value in response.iter_headers():
                if matches(name, header.pattern) and matches(header_value, rule.pattern):
                    return True
        return False
    return matches(value, rule.pattern)


def check_content_rule(response: ResponseSignature, rule: PatternRule) -> bool:
    return matches(response.body, rule.pattern)


def cookie_string(response: ResponseSignature) -> str:
    """Parsed cookies as `name=value; ...` followed by the raw Set-Cookie lines."""
    parsed = "; ".join(f"{name}={value}" for name, value in response.cookies.items())
    return parsed + "; " + "; ".join(response.set_cookies)


def check_cookie_rule(response: ResponseSignature, rule: PatternRule) -> bool:
    return matches(cookie_string(response), rule.pattern)


def check_reason_rule(response: ResponseSignature, rule: PatternRule) -> bool:
    return matches(response.status_message or "", rule.pattern)


def check_status_rule(response: ResponseSignature, rule: StatusRule) -> bool:
    return response.status_code == rule.code


CHECKERS: Dict[str, Callable[[ResponseSignature, object], bool]] = {
    "headers": check_header_rule,
    "content": check_content_rule,
    "cookies": check_cookie_rule,
    "reason": check_reason_rule,
    "status": check_status_rule,
}
