"""
Multi-Exchange Arbitrage Simulator.

An asynchronous simulation engine that scans cross-exchange price spreads,
simulates trade execution against a virtual portfolio, and streams the
results to connected dashboards.
"""

__version__ = "1.0.0"
__author__ = "Tim"
