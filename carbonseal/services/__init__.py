"""
Services module.

- chain: read-only contract access and event subscription
- mirror_store: off-chain relational mirror
- indexer: reconciliation, live event handling, lifecycle
"""
