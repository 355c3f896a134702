# SPDX-License-Identifier: Apache-2.0

"""
Staff directory endpoint.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag

staff_tag = Tag(name="Staff", description="Municipal staff directory")
staff_bp = APIBlueprint(
    'staff',
    __name__,
    url_prefix='/api',
    abp_tags=[staff_tag]
)


@staff_bp.get('/users')
def list_staff():
    """List staff members (id, name, department) for assignment."""
    staff = current_app.issue_service.list_staff()
    body = current_app.hal_formatter.format_staff_collection(
        [member.model_dump(mode="json") for member in staff]
    )
    return jsonify(body)
