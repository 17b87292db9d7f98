"""Quotations app package.

Price quotations issued by the venue operator. A quotation moves from
Draft through Sent to Accepted, Declined or Expired; accepting one
creates a confirmed booking after a fresh conflict check.
"""
