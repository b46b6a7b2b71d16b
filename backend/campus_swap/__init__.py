"""Campus Swap Package — peer-to-peer exchange negotiation for student listings.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
