"""
Core Layer

- **config/**: Settings and constants
- **exceptions/**: Error hierarchy
- **interfaces/**: Transport protocol
- **logging/**: structlog setup
- **resilience/**: Endpoint pool, selection, retry and request scheduling
"""
