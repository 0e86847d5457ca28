"""Exports & reporting: CSV writers, Markdown reports and chart datasets.

- writers.py: CSV emitters with fixed schemas
- reports.py: feasibility_report.md, assumptions.md and the analysis payload
- charts.py: cash-flow, breakdown and ESG datasets for the chart views
"""
