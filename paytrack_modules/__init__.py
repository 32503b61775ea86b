"""
Paytrack Modules.

Orchestration layers over the kernel and engines.  Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas
- Services bridging kernel selectors to pure functions

Modules:
- Reporting: monthly payment reports, report periods and snapshots
"""

from paytrack_modules import reporting

__all__ = ["reporting"]
