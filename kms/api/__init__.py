"""
HTTP API layer.
"""
