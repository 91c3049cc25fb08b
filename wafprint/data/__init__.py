"""Bundled data files for wafprint."""
