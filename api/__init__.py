"""
API Package - FastAPI routes and middleware
"""
