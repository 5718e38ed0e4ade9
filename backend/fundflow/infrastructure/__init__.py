"""Infrastructure Layer: database, payment gateway client, and logging.

Invariants:
    - Infrastructure depends on core types and errors, never on services or api
    - External failures are mapped to FundFlowError subclasses before leaving this layer
"""
