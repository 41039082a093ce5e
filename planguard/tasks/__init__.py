"""
PlanGuard - Background Tasks Package

Celery background tasks.
"""
