"""
Delivery services package.

- AssignmentService: partner binding, pickup, transit and completion
- EarningsService: earning credits, kitchen counters and earnings queries
"""

from .assignment_service import AssignmentService
from .earnings_service import EarningsService

__all__ = [
    'AssignmentService',
    'EarningsService',
]
