"""
Backend TrustCheck — identity resolution and trust scoring for fraud reports.

Resolves a phone number, tax id (NIP) or person name to known entities,
merges community reports about them and computes a trust score and risk
level. Organization data is cached from the VAT white-list registry.
"""

__version__ = "0.1.0"
