"""
                Staff Order Console

Order lifecycle and queue-management engine for restaurant staff:
snapshot polling, derived order state, guarded status changes,
cooking timers, bulk actions and multi-channel alerting.

Author: Khalil Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil Bannouri"
