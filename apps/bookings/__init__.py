"""Bookings app package.

This app encapsulates the booking domain: the booking aggregate and its
state machine, the conflict detector that keeps active bookings of a
resource from overlapping, and the ORM repository whose reads of a
(resource, day) are serialized through a lock row inside the database
transaction.
"""
