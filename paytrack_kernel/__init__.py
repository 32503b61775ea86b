"""
Paytrack Kernel

Infrastructure for the monthly payment-reconciliation and reporting engine:
- Declarative ORM base and engine/session management
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock and explicit actor capability
- Read-only selectors over the invoice/payment store
"""

__version__ = "0.1.0"
