"""Core services — backup, rollback and retention."""
