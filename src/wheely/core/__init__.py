"""
Core business logic components.

This package contains the rules engines and the pieces they lean on:
- Account and report rules engines
- Credential codec (bcrypt)
- Login rate limiting
- Log masking
- Metrics collection
"""
