"""
Knowledge Management Platform (KMS)

REST API for uploading, validating and curating organisational knowledge.
"""
