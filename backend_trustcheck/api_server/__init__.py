"""
API server package — HTTP interface to the verification engine.

Exposes search, organization and phone/person verification, report
submission and admin endpoints; delegates everything to the services.
"""
