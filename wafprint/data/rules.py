from pathlib import Path


DEFAULT_RULES_PATH = Path(__file__).with_name("waf_rules.json")
