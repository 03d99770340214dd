"""
Drama Quotes Backend — Middleware Package
=========================================

Cross-cutting request handling applied to every route.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so the access log line and error bodies carry it
    - Logging measures the full handling time, including CORS and GZip
"""
