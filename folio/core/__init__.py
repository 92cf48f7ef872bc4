"""
Core domain: ORM models, errors, list queries and small helpers.
"""
