"""Reporting module for Soft Brain."""

from softbrain.report.diagnostics import render_diagnostics

__all__ = ["render_diagnostics"]
