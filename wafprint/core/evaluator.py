"""
WAF rule evaluation.

`check_waf` decides whether one catalog entry is satisfied by one
response. A single matching rule anywhere in the entry is enough.
"""

from __future__ import annotations

import logging

from .matcher import (
    CHECKERS,
    check_content_rule,
    check_reason_rule,
    check_status_rule,
)
from .model import HelperFunction, ResponseSignature, WAFEntry

logger = logging.getLogger(__name__)


def check_helper_function(response: ResponseSignature, helper: HelperFunction) -> bool:
    """Evaluate a helper function's nested rules.

    Any matching rule of any kind satisfies the helper. Two combinations
    also satisfy it on their own: every content rule matching (when there
    is more than one), and a reason rule plus a status rule both matching.
    """
    rules = helper.rules

    any_match = False
    for kind, checker in CHECKERS.items():
        if any(checker(response, rule) for rule in getattr(rules, kind)):
            any_match = True
            break

    if len(rules.content) > 1:
        if all(check_content_rule(response, rule) for rule in rules.content):
            return True

    if rules.reason and rules.status:
        reason_match = any(check_reason_rule(response, rule) for rule in rules.reason)
        status_match = any(check_status_rule(response, rule) for rule in rules.status)
        if reason_match and status_match:
            return True

    return any_match


def check_waf(response: ResponseSignature, waf: WAFEntry, attack_mode: bool = False) -> bool:
    """Return True if any rule of `waf` matches `response`.

    Rules flagged attack_required are skipped unless `attack_mode` is set.
    Helper functions are evaluated in both phases.
    """
    matched = 0
    evaluated = 0

    for kind, rule in waf.rules.direct_rules():
        if rule.attack_required and not attack_mode:
            continue
        evaluated += 1
        if CHECKERS[kind](response, rule):
            matched += 1

    for helper in waf.rules.helper_functions:
        if check_helper_function(response, helper):
            matched += 1
            evaluated += 1

    if matched:
        # evaluated is informational only; it does not gate the verdict
        logger.debug(f"{waf.name}: {matched} matching rule(s), {evaluated} evaluated "
                     f"(attack_mode={attack_mode})")
    return matched > 0
