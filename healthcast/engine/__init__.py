"""
HealthCast Scoring Engine.

Components:
- features: Lookup tables and the 8-feature gap vector
- calibration: Feature-weight calibration (least squares, legacy jitter stub)
- severity: Four-strategy gap severity ensemble
- risk: Indicator risk, aggregation, confidence, compound risk, thresholds
- monte_carlo: Vectorized Monte Carlo simulation of compound risk
- correlation: Pearson and trend-similarity indicator correlation
- trend: OLS trend identification, forecasting, recommendations
- prediction: Issue predictions from patterns and metric trends
- health_engine: Facade running all of the above for one project
"""
