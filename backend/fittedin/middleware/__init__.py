"""
FittedIn Backend — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware chain, in execution order:
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    1. Rate limit first, so abusive clients are turned away before any work
    2. Request ID next, so every later log line can carry it
    3. Access log measures the duration of everything below it

Responses travel back through the same chain in reverse, which is where the
X-Request-ID header is attached and the access line is written.
"""
