"""Invoices app package.

Deposit, final, bond and add-on invoices raised against bookings, the
append-only payment ledger and the gateway webhook that feeds it.
"""
