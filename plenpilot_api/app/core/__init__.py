"""
Core infrastructure: configuration, logging, database access,
security helpers and ISO week utilities.
"""
