"""
PlanGuard - Routers Package

FastAPI route handlers.

Routers:
- jobs: HTTP-triggered billing jobs (payment status, calls trials)
- health: Liveness and database check
"""
