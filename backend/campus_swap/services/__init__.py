"""Services Layer — async orchestration of core rules over the store protocols.

Invariants:
    - Services hold no long-lived state; everything lives in the Persistence Store
    - Validate -> transact -> notify, in that order, for every mutating operation
    - Notification delivery is outside the transaction and never fails the caller
"""
