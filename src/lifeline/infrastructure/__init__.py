"""
LifeLine Infrastructure Layer

External integrations: notification dispatch and metrics.
All infrastructure components implement abstract interfaces for testability.
"""
