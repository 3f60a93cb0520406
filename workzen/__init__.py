"""
WorkZen HR

Onboarding, employee records and authentication API.
"""

__version__ = "1.0.0"
