"""
PlanGuard - Utilities Package
"""
