"""
Grievances Module
=================

Bounded context for citizen grievance intake and administration.

Responsibilities:
- Classify complaints by category, priority and location
- Issue human-facing ticket numbers
- Track each grievance through Pending / In Progress / Resolved / Rejected
- Persist grievances in memory or in an external table with fallback
"""

__version__ = "1.0.0"
