"""Fleet state reconciliation and scheduled command dispatch service."""

__version__ = "1.0.0"
