# SPDX-License-Identifier: Apache-2.0

"""
Routes package - HTTP endpoints for citizens and staff.
"""
