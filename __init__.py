"""
ForwardTest - walk-forward validation for parameterized trading strategies

Measures whether parameters chosen on past data keep working on the data
that follows, so overfit strategies are caught before they trade.
"""

__version__ = "0.1.0"
__author__ = "ForwardTest Team"
