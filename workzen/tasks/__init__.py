"""
WorkZen - Background Tasks Package
"""
