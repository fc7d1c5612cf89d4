"""
Member Service - CRUD operations for the member registry.
Handles reading/writing members.csv.
"""
import csv
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import GENERAL_PUBLIC, GENERAL_PUBLIC_ID, Member

logger = logging.getLogger(__name__)


class MemberService:
    """Service for managing members."""

    CSV_COLUMNS = ['id', 'name', 'address', 'phone', 'note', 'date_added']

    def __init__(self, members_csv: Path):
        self.members_csv = Path(members_csv)

    def list_members(self, include_general: bool = True) -> list[Member]:
        """List all members; the general-public entry comes first."""
        members = [GENERAL_PUBLIC] if include_general else []
        if not self.members_csv.exists():
            return members

        with open(self.members_csv, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if not row.get('id'):
                    continue
                members.append(Member(
                    id=int(row['id']),
                    name=row.get('name', ''),
                    address=row.get('address', ''),
                    phone=row.get('phone', ''),
                    note=row.get('note', ''),
                    date_added=row.get('date_added', ''),
                ))
        return members

    def get_member(self, member_id: int) -> Member:
        """Get a single member by ID (0 is the general public)."""
        for member in self.list_members():
            if member.id == member_id:
                return member
        raise NotFoundError(f"Member {member_id} not found")

    def create_member(self, member: Member) -> Member:
        """Register a new member with the next free id."""
        self._validate(member)
        members = self.list_members(include_general=False)
        member = replace(
            member,
            id=max((m.id for m in members), default=GENERAL_PUBLIC_ID) + 1,
            date_added=member.date_added or datetime.now().isoformat(timespec='seconds'),
        )
        members.append(member)
        self._write_members(members)
        logger.info("Created member %s (%s)", member.id, member.name)
        return member

    def update_member(self, member: Member) -> Member:
        """Update an existing member."""
        self._guard_sentinel(member.id)
        self._validate(member)
        members = self.list_members(include_general=False)
        for i, existing in enumerate(members):
            if existing.id == member.id:
                member = replace(member, date_added=member.date_added or existing.date_added)
                members[i] = member
                break
        else:
            raise NotFoundError(f"Member {member.id} not found")

        self._write_members(members)
        logger.info("Updated member %s", member.id)
        return member

    def delete_member(self, member_id: int) -> bool:
        """Delete a member."""
        self._guard_sentinel(member_id)
        members = self.list_members(include_general=False)
        remaining = [m for m in members if m.id != member_id]
        if len(remaining) == len(members):
            raise NotFoundError(f"Member {member_id} not found")

        self._write_members(remaining)
        logger.info("Deleted member %s", member_id)
        return True

    def _validate(self, member: Member):
        if not member.name.strip():
            raise ValidationError("Invalid member", errors={"name": "Name is required"})

    def _guard_sentinel(self, member_id: int):
        if member_id == GENERAL_PUBLIC_ID:
            raise ValidationError(
                "The general public entry cannot be changed",
                errors={"id": "Member ID can't be 'Umum'"},
            )

    def _write_members(self, members: list[Member]):
        """Write members back to CSV."""
        self.members_csv.parent.mkdir(parents=True, exist_ok=True)
        with open(self.members_csv, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for member in members:
                writer.writerow(member.to_dict())
