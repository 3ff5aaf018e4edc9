"""Constraint templates, CRD schemas, external data providers and a remote OPA driver."""

__version__ = "0.1.0"