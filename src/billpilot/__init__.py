"""
BillPilot — bill tracking and budget forecasting.

Learns the cadence and amounts of recurring bills and projects them into
a period-by-period budget.
"""

__version__ = "0.1.0"
__all__ = ["BillPilot"]

from billpilot.pilot import BillPilot  # noqa: E402
