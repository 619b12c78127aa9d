# app/compliance/cycles.py
import calendar
from datetime import date

from app.core.constants import ServiceCycle


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of the target month"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_service_date(cycle: ServiceCycle, serviced_on: date) -> date:
    return add_months(serviced_on, cycle.months)
