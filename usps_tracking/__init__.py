"""
USPS Order Tracking.
Attach USPS tracking numbers to orders and show them to customers.
"""

__version__ = "1.0.0"
__author__ = "Nicholas Beeson"
