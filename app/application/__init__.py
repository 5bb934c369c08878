"""Application layer: DTOs, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the storage protocol and the execution engine.
"""
