"""
HealthCast Gap Analysis.

Components:
- discrepancy: Gap discovery from project state against goals
- severity_summary: Portfolio view over scored gaps
"""
