"""
PlanGuard - Billing Status Jobs

Scheduled jobs that keep account billing state in line with payments:
the overdue-payment sweeper and the calls trial expiry sweeper.
"""

__version__ = "0.1.0"
