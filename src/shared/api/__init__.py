"""
Shared API Layer
================

Middleware, exception handlers and response envelopes shared by all routers.
"""
