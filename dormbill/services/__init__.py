"""
Business logic layer.
"""
