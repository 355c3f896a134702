# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the civic issue tracker.
"""

from enum import Enum


class IssueCategory(str, Enum):
    """Categories a citizen can pick when reporting an issue."""
    POTHOLE = "Pothole"
    GARBAGE_OVERFLOW = "Garbage Overflow"
    STREETLIGHT_OUTAGE = "Streetlight Outage"
    WATER_LEAKAGE = "Water Leakage"
    OTHER = "Other"


class IssueStatus(str, Enum):
    """Issue lifecycle status, declared in lifecycle order."""
    PENDING = "Pending"
    ACKNOWLEDGED = "Acknowledged"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


class Department(str, Enum):
    """Municipal departments that own issues and employ staff."""
    SANITATION = "Sanitation"
    PUBLIC_WORKS = "Public Works"
    ELECTRICAL = "Electrical"
    WATER_DEPARTMENT = "Water Department"
    GENERAL_SERVICES = "General Services"
