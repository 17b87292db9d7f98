"""Notifications app package.

Delivers customer notifications and document emails through Django's
email backend and keeps a delivery log used to deduplicate repeats.
"""
