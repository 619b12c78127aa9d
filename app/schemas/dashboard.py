# app/schemas/dashboard.py
from pydantic import BaseModel


class DashboardSummary(BaseModel):
    total_equipment: int
    green_count: int
    yellow_count: int
    red_count: int
    overdue_count: int
    warning_count: int
    compliance_percentage: float

    class Config:
        from_attributes = True
