"""
Manage Google Cloud Pub/Sub topics and subscriptions: list, create,
publish/pull, delete.
"""

__version__ = "0.1.0"
