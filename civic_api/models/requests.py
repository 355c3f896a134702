# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.

Field names follow the public camelCase contract; the legacy names used by
the first citizen and admin portals (``issueType``, ``citizenContact``,
``issueId``, ``userId``, ``imageUrl``) are accepted as aliases.
"""

from typing import Optional
from pydantic import BaseModel, Field, AliasChoices, ConfigDict, field_validator
from .enums import IssueCategory, IssueStatus


class SubmitReportRequest(BaseModel):
    """Citizen issue report."""
    
    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)
    
    category: IssueCategory = Field(
        ..., validation_alias=AliasChoices("category", "issueType"), description="Issue category"
    )
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    landmark: Optional[str] = Field(None, max_length=300, description="Nearby landmark")
    description: str = Field(..., min_length=1, max_length=2000, description="Issue description")
    contact: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("contact", "citizenContact"),
        description="Citizen contact for status updates"
    )
    photo_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("photoRef", "imageUrl", "photo"),
        description="Path or URL of an uploaded photo"
    )
    
    @field_validator('landmark', 'photo_ref')
    @classmethod
    def blank_to_none(cls, v):
        return v or None


class UpdateStatusRequest(BaseModel):
    """Staff request to move an issue to a new status."""
    
    tracking_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("trackingId", "issueId"), description="Tracking ID"
    )
    status: str = Field(..., min_length=1, description="New status")


class AssignStaffRequest(BaseModel):
    """Staff request to assign an issue to a staff member."""
    
    tracking_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("trackingId", "issueId"), description="Tracking ID"
    )
    staff_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("staffId", "userId"), description="Staff member ID"
    )


class IssueListQuery(BaseModel):
    """Query parameters for the staff issue list."""
    
    model_config = ConfigDict(use_enum_values=True)
    
    status: Optional[IssueStatus] = Field(None, description="Only issues with this status")
    search: Optional[str] = Field(None, max_length=6, description="Tracking ID substring")


class TrackingIdPath(BaseModel):
    """Path parameters for tracking lookups."""
    
    tracking_id: str = Field(..., description="Citizen-facing tracking ID")
