"""Catalog API.

Product catalogue service: JWT-authenticated CRUD over products with
role-based authorization, pagination, response caching and rate limiting.
"""

__version__ = "0.1.0"
