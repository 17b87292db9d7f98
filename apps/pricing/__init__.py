"""Pricing app package.

Rate cards per resource plus the monetary normalizer that turns a raw
amount into net/tax/gross figures and a deposit/balance split. Everything
under ``domain`` is pure and deterministic.
"""
