"""
Core infrastructure: exceptions, security, middleware and background jobs.
"""
