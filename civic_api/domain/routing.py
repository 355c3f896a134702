# SPDX-License-Identifier: Apache-2.0

"""
Department routing for reported issues.
"""

from typing import Dict, Union

from ..models.enums import IssueCategory, Department


DEFAULT_DEPARTMENT = Department.GENERAL_SERVICES

DEPARTMENT_BY_CATEGORY: Dict[str, Department] = {
    IssueCategory.GARBAGE_OVERFLOW.value: Department.SANITATION,
    IssueCategory.POTHOLE.value: Department.PUBLIC_WORKS,
    IssueCategory.STREETLIGHT_OUTAGE.value: Department.ELECTRICAL,
    IssueCategory.WATER_LEAKAGE.value: Department.WATER_DEPARTMENT,
}


def route_department(category: Union[IssueCategory, str, None]) -> Department:
    """
    Map an issue category to the department that owns it.

    Total over any input: ``Other`` and unknown values fall back to
    General Services.
    """
    key = category.value if isinstance(category, IssueCategory) else category
    return DEPARTMENT_BY_CATEGORY.get(key, DEFAULT_DEPARTMENT)
