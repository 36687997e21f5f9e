"""Quantum Advisor: tool-calling conversation engine for financial data."""

__version__ = "0.1.0"
