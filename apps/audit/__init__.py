"""Audit trail of document transitions."""
