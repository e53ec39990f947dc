"""
Wheely - public transport status reporting API

A FastAPI service where registered accounts file reports (incidents,
suggestions, complaints) against transport routes. Credentials are kept
as bcrypt hashes and records live in a relational store via SQLAlchemy.
"""

__version__ = "1.0.0"
