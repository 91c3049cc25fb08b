"""
Rule catalog for wafprint
Loads the JSON ruleset into immutable, pre-compiled WAF entries
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import CatalogLoadError
from .matcher import classify_header_name, compile_pattern
from .model import HelperFunction, PatternRule, RuleGroup, StatusRule, WAFEntry

logger = logging.getLogger(__name__)

PATTERN_KINDS = ("content", "cookies", "reason")


class RuleCatalog:
    """Ordered, read-only collection of WAF entries.

    Entry order is the detection order: with the stop-at-first policy the
    earliest matching entry wins.
    """

    def __init__(self, entries: List[WAFEntry], source: Optional[str] = None):
        self._entries: Tuple[WAFEntry, ...] = tuple(entries)
        self._by_name: Dict[str, WAFEntry] = {}
        for entry in self._entries:
            self._by_name.setdefault(entry.name, entry)
        self.source = source

    def __iter__(self) -> Iterator[WAFEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> WAFEntry:
        return self._entries[index]

    @property
    def entries(self) -> Tuple[WAFEntry, ...]:
        return self._entries

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def get(self, name: str) -> Optional[WAFEntry]:
        return self._by_name.get(name)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RuleCatalog":
        """Load a ruleset file. Raises CatalogLoadError on any problem."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise CatalogLoadError("Ruleset file not found", str(path))
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogLoadError(f"Failed to read ruleset: {e}", str(path)) from e
        except json.JSONDecodeError as e:
            raise CatalogLoadError(f"Invalid JSON in ruleset: {e}", str(path)) from e

        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_dict(cls, data: Any, source: Optional[str] = None) -> "RuleCatalog":
        if not isinstance(data, dict) or not isinstance(data.get("wafs"), list):
            raise CatalogLoadError("Ruleset must be an object with a 'wafs' list", source)

        entries = []
        for index, raw in enumerate(data["wafs"]):
            try:
                entries.append(_parse_entry(raw))
            except CatalogLoadError as e:
                raise CatalogLoadError(f"wafs[{index}]: {e}", source) from e

        catalog = cls(entries, source=source)
        fallbacks = catalog.literal_patterns()
        logger.info(f"Loaded {len(catalog)} WAF signatures"
                    + (f" ({len(fallbacks)} literal-match patterns)" if fallbacks else ""))
        return catalog

    def literal_patterns(self) -> List[Tuple[str, str, str]]:
        """(waf name, rule kind, pattern source) for every pattern that is not a valid regex."""
        found = []
        for entry in self._entries:
            for kind, rule in entry.rules.pattern_rules():
                if rule.pattern.is_literal:
                    found.append((entry.name, kind, rule.pattern.source))
                if rule.header and rule.header.is_pattern and rule.header.pattern.is_literal:
                    found.append((entry.name, f"{kind}.name", rule.header.name))
        return found

    def header_name_patterns(self) -> List[Tuple[str, str]]:
        """(waf name, header rule name) for header rules matched by name pattern."""
        found = []
        for entry in self._entries:
            for _, rule in entry.rules.pattern_rules():
                if rule.header and rule.header.is_pattern:
                    found.append((entry.name, rule.header.name))
        return found


def _parse_entry(raw: Any) -> WAFEntry:
    if not isinstance(raw, dict):
        raise CatalogLoadError("entry must be an object")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise CatalogLoadError("entry is missing 'name'")
    try:
        rules = _parse_rule_group(raw.get("rules") or {}, nested=False)
    except CatalogLoadError as e:
        raise CatalogLoadError(f"{name}: {e}") from e
    return WAFEntry(name=name, vendor=str(raw.get("manufacturer") or ""), rules=rules)


def _parse_rule_group(raw: Any, nested: bool) -> RuleGroup:
    if not isinstance(raw, dict):
        raise CatalogLoadError("'rules' must be an object")

    headers = tuple(_parse_header_rule(r) for r in _sequence(raw, "headers"))
    patterns = {kind: tuple(_parse_pattern_rule(r, kind) for r in _sequence(raw, kind))
                for kind in PATTERN_KINDS}
    status = tuple(_parse_status_rule(r) for r in _sequence(raw, "status"))

    helpers = _sequence(raw, "helper_functions")
    if helpers and nested:
        raise CatalogLoadError("helper functions cannot be nested")
    helper_functions = tuple(_parse_helper(h) for h in helpers)

    return RuleGroup(
        headers=headers,
        content=patterns["content"],
        cookies=patterns["cookies"],
        reason=patterns["reason"],
        status=status,
        helper_functions=helper_functions,
    )


def _sequence(raw: Dict[str, Any], key: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise CatalogLoadError(f"'{key}' must be a list")
    for item in value:
        if not isinstance(item, dict):
            raise CatalogLoadError(f"'{key}' entries must be objects")
    return value


def _pattern_source(raw: Dict[str, Any], kind: str) -> str:
    pattern = raw.get("pattern")
    if not isinstance(pattern, str):
        raise CatalogLoadError(f"{kind} rule is missing a string 'pattern'")
    return pattern


def _parse_header_rule(raw: Dict[str, Any]) -> PatternRule:
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise CatalogLoadError("header rule is missing 'name'")
    return PatternRule(
        pattern=compile_pattern(_pattern_source(raw, "headers")),
        attack_required=bool(raw.get("attack_required", False)),
        header=classify_header_name(name),
    )


def _parse_pattern_rule(raw: Dict[str, Any], kind: str) -> PatternRule:
    return PatternRule(
        pattern=compile_pattern(_pattern_source(raw, kind)),
        attack_required=bool(raw.get("attack_required", False)),
    )


def _parse_status_rule(raw: Dict[str, Any]) -> StatusRule:
    code = raw.get("code")
    # bool is an int subclass
    if not isinstance(code, int) or isinstance(code, bool):
        raise CatalogLoadError("status rule 'code' must be an integer")
    return StatusRule(code=code, attack_required=bool(raw.get("attack_required", False)))


def _parse_helper(raw: Dict[str, Any]) -> HelperFunction:
    if "rules" not in raw:
        raise CatalogLoadError("helper function is missing 'rules'")
    return HelperFunction(rules=_parse_rule_group(raw["rules"], nested=True))
