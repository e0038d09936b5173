"""Command-line tools for the vesting ledger."""
