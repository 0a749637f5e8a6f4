"""
Kernel layer

Foundational pieces every engine builds on:
- Data models (users, knowledge items, validations, audit log, ...)
- Identity (password hashing, JWT, registration/login)
- Role-based access rules
- Append-only audit logger
- Domain exceptions
"""
