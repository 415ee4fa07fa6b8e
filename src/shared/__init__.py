"""
Shared Kernel Module
====================

Shared infrastructure used by every bounded context (currently only
grievances): structured logging, HTTP middleware and response envelopes.

Architecture Pattern: Modular Monolith
- Each module (grievances) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add grievance business logic to the shared kernel.
"""

__version__ = "1.0.0"
