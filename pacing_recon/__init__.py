"""
Pacing Reconciliation Backend Package.

FastAPI service layer for the ad-operations pacing dashboard. Normalizes
delivery, pacing and contract-terms exports, rolls delivery up by day,
campaign and period, classifies pacing severity, and reconciles delivering
campaigns against the contract-terms list.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Reconciliation engine and credential service
"""

__version__ = "1.0.0"
