# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Civic issue intake and tracking API.

Citizens report issues, municipal staff triage and resolve them, and the
dashboard aggregates resolution and trend analytics.
"""

__version__ = "1.0.0"
