"""
wafprint Detector
Runs the baseline probe and, when nothing is found, the attack probe
against the rule catalog
"""

import logging
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from .catalog import RuleCatalog
from .evaluator import check_waf
from .exceptions import TransportError
from .http_client import DEFAULT_TIMEOUT_MS, HTTPClient, RawResponse
from .model import ResponseSignature
from ..data.rules import DEFAULT_RULES_PATH

ATTACK_PARAM = "test"
ATTACK_PAYLOAD = '<script>alert("XSS");</script>'

PHASE_BASELINE = "baseline"
PHASE_ATTACK = "attack"

_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off", "")


def _as_bool(value: Any, default: bool) -> bool:
    """Interpret booleans, numbers and common string spellings; anything else gives `default`."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


@dataclass
class DetectionOptions:
    """Per-call detection settings. `timeout` is in milliseconds per probe."""
    find_all: bool = False
    check_attacks: bool = True
    timeout: int = DEFAULT_TIMEOUT_MS

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "DetectionOptions":
        """Accept camelCase or snake_case option names; unknown keys are ignored."""
        options = options or {}

        def pick(*keys, default):
            for key in keys:
                if key in options and options[key] is not None:
                    return options[key]
            return default

        timeout = pick("timeout", default=DEFAULT_TIMEOUT_MS)
        try:
            timeout = int(timeout)
        except (TypeError, ValueError):
            timeout = DEFAULT_TIMEOUT_MS
        if timeout <= 0:
            timeout = DEFAULT_TIMEOUT_MS

        return cls(
            find_all=_as_bool(pick("findAll", "find_all", default=False), False),
            check_attacks=_as_bool(pick("checkAttacks", "check_attacks", default=True), True),
            timeout=timeout,
        )


@dataclass
class DetectionReport:
    """Outcome of one detection call."""
    target: str
    url: str
    detected: List[str] = field(default_factory=list)
    phases: Dict[str, str] = field(default_factory=dict)
    attack_url: Optional[str] = None
    attack_error: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.detected)


class WAFDetector:
    """Identifies which catalog WAFs a target's responses match.

    The catalog is the only state kept on the instance; every call builds
    its own result list, so one detector can serve concurrent calls.
    """

    def __init__(self,
                 catalog: Optional[RuleCatalog] = None,
                 rules_path: Optional[Union[str, Path]] = None,
                 client: Optional[Any] = None,
                 logger: Optional[logging.Logger] = None):
        self.catalog = catalog if catalog is not None else RuleCatalog.from_file(rules_path or DEFAULT_RULES_PATH)
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def normalize_target(target: str) -> str:
        """Default the scheme to https and give an empty path a trailing '/'."""
        target = target.strip()
        if not target.startswith(("http://", "https://")):
            target = f"https://{target}"

        try:
            parsed = urllib.parse.urlsplit(target)
            if not parsed.hostname:
                raise ValueError("missing host")
            return urllib.parse.urlunsplit((
                parsed.scheme,
                parsed.netloc,
                parsed.path or "/",
                parsed.query,
                parsed.fragment,
            ))
        except ValueError as e:
            raise TransportError(f"Invalid target {target!r}: {e}", url=target) from e

    @staticmethod
    def build_attack_url(url: str) -> str:
        """Append the reflected-script payload as an extra query parameter."""
        try:
            return str(httpx.URL(url).copy_add_param(ATTACK_PARAM, ATTACK_PAYLOAD))
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid target {url!r}: {e}", url=url) from e

    def scan_catalog(self,
                     response: ResponseSignature,
                     attack_mode: bool,
                     find_all: bool,
                     detected: List[str]) -> List[str]:
        """Evaluate catalog entries in order, appending new matches to `detected`.

        Returns the names added by this pass.
        """
        added = []
        for waf in self.catalog:
            if waf.name in detected:
                continue
            if check_waf(response, waf, attack_mode):
                detected.append(waf.name)
                added.append(waf.name)
                self.logger.info(f"Matched {waf.name} ({waf.vendor or 'unknown vendor'})")
                if not find_all:
                    break
        return added

    async def detect(self, target: str, options: Union[DetectionOptions, Mapping[str, Any], None] = None) -> List[str]:
        """Return the names of detected WAFs in catalog order (empty if none).

        Raises TransportError if the baseline probe fails.
        """
        report = await self.identify(target, options)
        return report.detected

    async def identify(self, target: str, options: Union[DetectionOptions, Mapping[str, Any], None] = None) -> DetectionReport:
        if not isinstance(options, DetectionOptions):
            options = DetectionOptions.from_mapping(options)

        if self.client is not None:
            return await self._identify(self.client, target, options)

        async with HTTPClient() as client:
            return await self._identify(client, target, options)

    async def _identify(self, client: Any, target: str, options: DetectionOptions) -> DetectionReport:
        url = self.normalize_target(target)
        report = DetectionReport(target=target, url=url)
        detected: List[str] = []

        self.logger.info(f"Making request to {url}")
        baseline = await client.probe(url, options.timeout)
        signature = self._signature(baseline)

        for name in self.scan_catalog(signature, False, options.find_all, detected):
            report.phases[name] = PHASE_BASELINE

        if not detected and options.check_attacks:
            self.logger.info("No WAF detected in normal response, trying attack request")
            try:
                attack_url = self.build_attack_url(url)
                report.attack_url = attack_url
                attack = await client.probe(attack_url, options.timeout)
            except TransportError as e:
                self.logger.warning(f"Attack request failed: {e}")
                report.attack_error = str(e)
            else:
                attack_signature = self._signature(attack)
                for name in self.scan_catalog(attack_signature, True, options.find_all, detected):
                    report.phases[name] = PHASE_ATTACK

        report.detected = detected
        return report

    @staticmethod
    def _signature(raw: RawResponse) -> ResponseSignature:
        return ResponseSignature.build(raw.status_code, raw.reason, raw.headers, raw.body)
