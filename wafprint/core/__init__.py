"""
wafprint Core Components
Rule catalog, matching, evaluation and detection
"""

from .catalog import RuleCatalog
from .detector import DetectionOptions, DetectionReport, WAFDetector
from .evaluator import check_helper_function, check_waf
from .exceptions import CatalogLoadError, ProbeTimeoutError, TransportError, WAFPrintError
from .http_client import HTTPClient, RawResponse
from .model import ResponseSignature, WAFEntry

__all__ = [
    "RuleCatalog",
    "DetectionOptions",
    "DetectionReport",
    "WAFDetector",
    "check_helper_function",
    "check_waf",
    "CatalogLoadError",
    "ProbeTimeoutError",
    "TransportError",
    "WAFPrintError",
    "HTTPClient",
    "RawResponse",
    "ResponseSignature",
    "WAFEntry",
]
