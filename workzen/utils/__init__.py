"""WorkZen - Utilities"""
