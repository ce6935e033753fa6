"""
Core components for the consistency audit.

Contains:
- Data models (Objective, Requirement, Issue, ConsistencyReport)
- Base class for consistency rules
- Text normalisation helpers
- Exceptions
"""
