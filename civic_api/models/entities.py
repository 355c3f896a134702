# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the civic issue tracker.
"""

import re
from datetime import datetime
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
from .base import BaseEntity
from .enums import IssueCategory, IssueStatus, Department


BCRYPT_HASH_PATTERN = re.compile(r'^\$2[aby]\$\d{2}\$')
TRACKING_ID_PATTERN = re.compile(r'^\d{6}$')


class GeoPoint(BaseModel):
    """GeoJSON point with an optional human landmark."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., description="[longitude, latitude]")
    landmark: Optional[str] = Field(None, max_length=300, description="Nearby landmark")
    
    @field_validator('coordinates')
    @classmethod
    def validate_coordinates(cls, v):
        """Validate coordinate pair order and ranges."""
        if len(v) != 2:
            raise ValueError('Coordinates must be a [longitude, latitude] pair')
        longitude, latitude = v
        if not -180.0 <= longitude <= 180.0:
            raise ValueError('Longitude must be between -180 and 180')
        if not -90.0 <= latitude <= 90.0:
            raise ValueError('Latitude must be between -90 and 90')
        return v
    
    @property
    def longitude(self) -> float:
        return self.coordinates[0]
    
    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class StaffSummary(BaseModel):
    """Display projection of a staff member, safe to embed in issue responses."""
    
    id: str
    name: str
    department: Department
    
    model_config = ConfigDict(use_enum_values=True)


class Staff(BaseEntity):
    """Municipal employee who can be assigned to issues."""
    
    name: str = Field(..., min_length=1, max_length=200, description="Full name")
    email: str = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="bcrypt password hash")
    department: Department = Field(..., description="Owning department")
    
    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, v.lower()):
            raise ValueError('Invalid email format')
        return v.lower()
    
    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate staff name."""
        if not v.strip():
            raise ValueError('Staff name cannot be empty')
        return v.strip()
    
    @field_validator('password_hash')
    @classmethod
    def validate_password_hash(cls, v):
        """Refuse anything that is not a bcrypt hash."""
        if not BCRYPT_HASH_PATTERN.match(v):
            raise ValueError('Password must be stored as a bcrypt hash')
        return v
    
    def public_dict(self) -> Dict[str, Any]:
        """Serialisable view without the credential."""
        return self.model_dump(mode="json", exclude={"password_hash"})


class Issue(BaseEntity):
    """A civic issue reported by a citizen."""
    
    tracking_id: str = Field(..., description="Citizen-facing 6-digit identifier")
    category: IssueCategory = Field(..., description="Issue category")
    description: str = Field(..., min_length=1, max_length=2000, description="Issue description")
    location: GeoPoint = Field(..., description="Reported location")
    photo_ref: Optional[str] = Field(None, description="Path or URL of an uploaded photo")
    status: IssueStatus = Field(default=IssueStatus.PENDING, description="Lifecycle status")
    contact: str = Field(..., min_length=1, description="Citizen contact for notifications")
    department: Department = Field(..., description="Department derived from category")
    assigned_staff_id: Optional[str] = Field(None, description="Assigned staff member ID")
    resolved_at: Optional[datetime] = Field(None, description="Resolution timestamp")
    
    # Resolved for display only, never persisted
    assigned_staff: Optional[StaffSummary] = Field(None, exclude=True)
    
    @field_validator('tracking_id')
    @classmethod
    def validate_tracking_id(cls, v):
        if not TRACKING_ID_PATTERN.match(v):
            raise ValueError('Tracking ID must be exactly 6 digits')
        return v
    
    @field_validator('description', 'contact')
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Field cannot be blank')
        return v.strip()
    
    def to_public_dict(self) -> Dict[str, Any]:
        """JSON-ready representation including the resolved staff member."""
        data = self.model_dump(mode="json", by_alias=True)
        data["assignedStaff"] = self.assigned_staff.model_dump(mode="json") if self.assigned_staff else None
        return data
