"""
LifeLine - Vital-Sign Extraction & Escalation Engine

This package provides the core backend services for the LifeLine
personal-safety monitor: turning raw optical sensor frames into
vital-sign estimates, scoring risk, and driving a timed, retried
emergency-contact notification workflow.

IMPORTANT: Every estimate produced here is a non-diagnostic heuristic.
Confidence values are the only signal of trustworthiness.
"""

__version__ = "0.1.0"
__author__ = "LifeLine Engineering Team"
