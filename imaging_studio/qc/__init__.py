"""Fidelity checks for encoded output."""

from .metrics import FidelityReport, build_report, structural_similarity

__all__ = ["FidelityReport", "build_report", "structural_similarity"]
