"""
Ledger replication for drive metadata.

Reads the account's operation log, replays it into entities, and emits
new operations for local mutations.
"""
