"""
Domain module - Domain Layer

Entities, value objects and the interfaces (gateways, repositories, ports)
the reconciliation and dispatch jobs depend on. Nothing here imports from
the Application, Infrastructure or Main layers.
"""
