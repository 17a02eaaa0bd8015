"""
Dashboard Pydantic schemas.

Document the cached statistics payloads served under /dashboard.
"""

from pydantic import BaseModel
from typing import List, Optional


class EntityStats(BaseModel):
    total: int
    last_month: int
    last_week: int
    percentage_change: float
    trend: str


class ActivityStats(BaseModel):
    total: int
    users: int
    blogs: int
    products: int
    previous_hour: int
    change: int


class DashboardStats(BaseModel):
    users: EntityStats
    blogs: EntityStats
    products: EntityStats
    activity: ActivityStats


class DashboardStatsResponse(BaseModel):
    success: bool = True
    data: DashboardStats
    cached_at: str


class OverviewDataset(BaseModel):
    name: str
    data: List[int]


class DashboardOverview(BaseModel):
    labels: List[str]
    datasets: List[OverviewDataset]


class DashboardOverviewResponse(BaseModel):
    success: bool = True
    data: DashboardOverview


class RecentUser(BaseModel):
    id: int
    name: str
    email: str
    avatar: str
    created_at: Optional[str]
    type: str = "user"


class RecentBlog(BaseModel):
    id: int
    title: str
    created_at: Optional[str]
    type: str = "blog"


class RecentProduct(BaseModel):
    id: int
    name: str
    created_at: Optional[str]
    type: str = "product"


class RecentActivity(BaseModel):
    users: List[RecentUser]
    blogs: List[RecentBlog]
    products: List[RecentProduct]


class RecentActivityResponse(BaseModel):
    success: bool = True
    data: RecentActivity
