"""Service layer: hosted-backend clients and domain services."""
