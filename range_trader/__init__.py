"""
Range Trader - low-volatility range entry executor with trailing-stop management
"""

__version__ = "0.3.0"
