"""Exchange rules — lifecycle table, creation preconditions, typed errors and events.

Nothing here performs IO: services/ loads records, asks these modules what is
allowed, and writes the outcome through the store protocols.
"""
