"""Verification workflow: findings, decisions, geocode retries"""

from .service import WorkflowService

__all__ = ["WorkflowService"]
