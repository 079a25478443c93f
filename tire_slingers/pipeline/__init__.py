"""Audited pipeline stages."""
