"""
wafprint - Web Application Firewall fingerprinting

Identifies which WAF, if any, protects an HTTP endpoint by matching its
responses against a catalog of vendor signatures.

For authorized security testing only.
"""

__version__ = "1.0.0"
__author__ = "wafprint contributors"
__description__ = "Web Application Firewall fingerprinting"

# Ethical usage reminder
ETHICAL_NOTICE = """
This tool sends a probe carrying a script payload to the target.
Only run it against systems you own or are authorized to test.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
