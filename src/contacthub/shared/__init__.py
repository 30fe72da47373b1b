"""
Shared infrastructure: database, logging and error types.
"""
