"""
Action Plan Service
===================

Backend for project action plans: phase, milestone and task hierarchy,
progress timeline and deliverables.
"""

__version__ = "0.1.0"
