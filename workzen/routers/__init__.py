"""
WorkZen - API Routers
"""

from workzen.routers import auth, employees, onboarding, users
