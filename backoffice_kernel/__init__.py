"""
Back-office Kernel

Shared foundation for the billing, receivables and overtime modules:
- Structured JSON logging
- Typed exceptions with machine-readable codes
- Injectable clock and competency (year-month) values
- Money rounding helpers
- SQLAlchemy base classes and engine management
"""

__version__ = "0.1.0"
