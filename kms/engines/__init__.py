"""
Domain engines built on the kernel.
"""
