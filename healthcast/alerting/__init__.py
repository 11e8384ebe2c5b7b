"""
HealthCast Early Warning System.

Components:
- early_warning: Alert generation from trend, velocity, change, risk and history
- actions: Preventive action templates per warning source
- dedup: Deduplication on (type, title, severity) and prioritization
- escalation: Promotion of stale alerts to escalated critical copies
"""
