# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains the application error taxonomy and handlers, CORS
handling and request body validation helpers.
"""
