"""Production side of a plant study: tonnage, output-stream revenue, cost totals.

- revenue.py: annual tonnage and per-stream revenue
- costs.py: CAPEX total and annualised OPEX
"""
