"""
Observability package - tracing and structured logging setup.
"""
