"""
Celery task modules. Each task opens a session from the worker's database
handle and delegates to a plain `run_*` function.
"""
