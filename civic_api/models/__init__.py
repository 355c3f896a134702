# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the civic issue tracker.
"""

from .base import BaseEntity
from .enums import IssueCategory, IssueStatus, Department
from .entities import GeoPoint, Issue, Staff, StaffSummary
from .requests import (
    SubmitReportRequest,
    UpdateStatusRequest,
    AssignStaffRequest,
    IssueListQuery,
    TrackingIdPath
)
from .responses import HalLink, CategoryCount, StatusCount, AnalyticsSummary

__all__ = [
    "BaseEntity",
    "IssueCategory",
    "IssueStatus",
    "Department",
    "GeoPoint",
    "Issue",
    "Staff",
    "StaffSummary",
    "SubmitReportRequest",
    "UpdateStatusRequest",
    "AssignStaffRequest",
    "IssueListQuery",
    "TrackingIdPath",
    "HalLink",
    "CategoryCount",
    "StatusCount",
    "AnalyticsSummary"
]
