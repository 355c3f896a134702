#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Provision and remove staff accounts.

Usage:
    python -m civic_api.scripts.manage_staff add --name "Ana Silva" \
        --email ana@city.gov --department "Public Works"
    python -m civic_api.scripts.manage_staff list
    python -m civic_api.scripts.manage_staff remove <staff_id>

The password is read from STAFF_PASSWORD or prompted for, and only its
bcrypt hash is stored. Removing a staff member unassigns their issues.
"""

import argparse
import getpass
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from ..middleware.error_handler import CustomException
from ..models.enums import Department
from ..services.credentials import PasswordHasher
from ..services.issues import IssueService
from ..services.mongodb import get_mongodb_service, close_mongodb_connection
from ..services.notifier import LogNotificationGateway

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage municipal staff accounts")
    subcommands = parser.add_subparsers(dest="command", required=True)

    add = subcommands.add_parser("add", help="Provision a staff member")
    add.add_argument("--name", required=True)
    add.add_argument("--email", required=True)
    add.add_argument(
        "--department",
        required=True,
        choices=[department.value for department in Department]
    )

    subcommands.add_parser("list", help="List staff members")

    remove = subcommands.add_parser("remove", help="Remove a staff member and unassign their issues")
    remove.add_argument("staff_id")

    return parser


def _read_password() -> str:
    password = os.getenv("STAFF_PASSWORD")
    if password:
        return password
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        raise ValueError("Passwords do not match")
    return password


def main(argv: Optional[List[str]] = None, service: Optional[IssueService] = None) -> int:
    args = build_parser().parse_args(argv)

    owns_service = service is None
    if owns_service:
        service = IssueService(get_mongodb_service(), LogNotificationGateway())

    try:
        if args.command == "add":
            staff = service.provision_staff(
                name=args.name,
                email=args.email,
                password=_read_password(),
                department=args.department,
                hasher=PasswordHasher()
            )
            print(f"Created staff member {staff.id} ({staff.email}, {staff.department})")

        elif args.command == "list":
            for member in service.list_staff():
                print(f"{member.id}  {member.name}  [{member.department}]")

        elif args.command == "remove":
            unassigned = service.remove_staff(args.staff_id)
            print(f"Removed staff member {args.staff_id}; {unassigned} issue(s) unassigned")

        return 0

    except (CustomException, ValidationError, ValueError) as e:
        logger.error(f"Staff command failed: {e}")
        return 1
    finally:
        if owns_service:
            close_mongodb_connection()


if __name__ == "__main__":
    sys.exit(main())
