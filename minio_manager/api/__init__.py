"""
Local shell API: FastAPI routes and dependencies.
"""
