"""Feasibility study package.

Turns a plant configuration into investment metrics. Pure-python, no I/O.
See `feasibility/study/calculator.py` for the single entry point.
"""
