"""
Cart Pricing Package

Reprices shopping cart line items from checkout onward against an external
pricing service, with a cheap static price table before checkout.
Pricing failures are reported as cart annotations, never as exceptions.
"""

__version__ = "1.0.0"
