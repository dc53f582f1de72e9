"""NYC neighborhood lookup and nearby-sales API."""

__version__ = "0.1.0"
