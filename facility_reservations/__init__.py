"""
Facility Reservations.

Booking, maintenance and facility management backend for shared sports facilities.
"""

__version__ = "0.1.0"
