# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the civic issue tracker.

This package contains pure business logic functions with no side effects:
tracking ID generation, department routing, lifecycle rules and analytics
folds. Store and notification access live in the services package.
"""
