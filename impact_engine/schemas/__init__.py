"""Payload schemas exchanged with external collaborators."""
from .report import ImpactReport, StakeholderReport, build_report

__all__ = ["ImpactReport", "StakeholderReport", "build_report"]
