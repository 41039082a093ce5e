"""
PlanGuard - Pydantic Schemas Package
"""
