"""
HealthCast — Predictive Risk & Severity Scoring Engine.

Architecture:
    healthcast/
    ├── schemas/         # Pydantic value objects (gaps, indicators, trends, alerts)
    ├── engine/          # Severity scorer, risk engine, Monte Carlo, trends, predictions
    ├── alerting/        # Early-warning generator (sources, actions, dedup, escalation)
    ├── analysis/        # Discrepancy detection and severity summaries
    ├── config.py        # Pydantic settings
    ├── exceptions.py    # Error hierarchy
    └── logging_config.py

Module Boundaries:
    - The engine is a pure computation library: no storage, no HTTP, no scheduling
    - Callers fetch inputs and persist outputs; nothing here calls back into them
    - Randomness only in Monte Carlo jitter and the feature-weight jitter stub

Data Flow:
    Gaps / RiskIndicators / HistoricalData / TrendData
    → Severity Scorer / Risk Engine / Trend Analyzer
    → Early-Warning Generator → caller

Version: 1.0.0
"""

__version__ = "1.0.0"
