"""
Syncauth - Multi-device session and authentication service

Users log in once per device and receive a bearer token that is presented
on every request to the sync application.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- storage: Durable key-value store adapters
- auth: Credential validation, token issuance, validation and revocation
- session: Observational session records
- middleware: Token extraction and protected-route gate
- api: Request/response models
"""

__version__ = "1.0.0"
