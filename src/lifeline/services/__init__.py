"""
LifeLine Services Layer

Signal processing, risk scoring, escalation and the monitoring
coordinator that connects them.
"""
