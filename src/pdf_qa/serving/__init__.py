"""
Serving — FastAPI application and session management.

This module exposes the query service over HTTP (``POST /ask``) and owns
the creation and eviction of per-session conversation histories.
"""
