"""
Shared infrastructure for all pipeline stages: errors, logging,
configuration, retry and data models.
"""
