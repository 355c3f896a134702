# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class HalLink(BaseModel):
    """HAL link representation."""
    
    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class CategoryCount(BaseModel):
    """Number of issues reported in one category."""
    
    category: str
    count: int


class StatusCount(BaseModel):
    """Number of issues currently in one status."""
    
    status: str
    count: int


class AnalyticsSummary(BaseModel):
    """Dashboard analytics over the whole issue collection."""
    
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    
    avg_resolution_time_hours: float = Field(0.0, description="Mean hours from report to resolution")
    resolved_issues: int = Field(0, description="Resolved issues with a valid timestamp pair")
    total_issues: int = Field(0, description="Issues in the collection")
    trend_data: List[CategoryCount] = Field(default_factory=list, description="Counts per category")
    status_counts: List[StatusCount] = Field(default_factory=list, description="Counts per status")
    
    def to_public_dict(self) -> dict:
        """JSON body with the average rounded to one decimal place."""
        data = self.model_dump(by_alias=True)
        data["avgResolutionTimeHours"] = round(self.avg_resolution_time_hours, 1)
        return data
