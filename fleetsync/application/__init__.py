"""
Application module - Application Layer

Use cases orchestrating the domain: the scheduled reconciliation and
dispatch jobs, and the health/info queries of the operational API.
"""
