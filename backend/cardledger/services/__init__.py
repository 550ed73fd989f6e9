"""Service Layer — imperative shell around the pure lifecycle rules.

Invariants:
    - Registry and ledger are bound to one AsyncSession and never commit
    - Only LifecycleController takes card locks; it and the startup seeder open transactions
"""
