"""
wafprint Utility Modules
Logging and reporting utilities
"""

from .logger import setup_logger
from .report import ReportGenerator, build_result_record

__all__ = [
    "setup_logger",
    "ReportGenerator",
    "build_result_record",
]
