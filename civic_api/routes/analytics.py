# SPDX-License-Identifier: Apache-2.0

"""
Dashboard analytics endpoint.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag

analytics_tag = Tag(name="Analytics", description="Resolution time and trend statistics")
analytics_bp = APIBlueprint(
    'analytics',
    __name__,
    url_prefix='/api',
    abp_tags=[analytics_tag]
)


@analytics_bp.get('/analytics')
def get_analytics():
    """Average resolution time, per-category trend and per-status counts."""
    summary = current_app.analytics_service.compute_summary()
    return jsonify(current_app.hal_formatter.format_analytics(summary.to_public_dict()))
