"""Core reconciliation engine for extsync.

Contains the feed cache, the installation ledger, the installer state
machine and the orchestration service that ties them together.
"""
