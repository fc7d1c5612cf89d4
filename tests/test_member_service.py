"""
Tests for the member registry.
"""
import pytest

from pos_tool.engine.errors import NotFoundError, ValidationError
from pos_tool.engine.models import GENERAL_PUBLIC, Member
from pos_tool.services.member_service import MemberService


@pytest.fixture
def members(tmp_path):
    return MemberService(tmp_path / "members.csv")


def test_general_public_always_listed_first(members):
    assert members.list_members() == [GENERAL_PUBLIC]
    members.create_member(Member(id=0, name="Toko Makmur"))
    listed = members.list_members()
    assert listed[0] == GENERAL_PUBLIC
    assert [m.name for m in listed] == ["Umum", "Toko Makmur"]
    assert members.list_members(include_general=False)[0].name == "Toko Makmur"


def test_create_assigns_ids_and_date(members):
    first = members.create_member(Member(id=0, name="Budi", phone="0812"))
    second = members.create_member(Member(id=0, name="Sari"))

    assert (first.id, second.id) == (1, 2)
    assert first.date_added
    assert members.get_member(1).phone == "0812"


def test_name_required(members):
    with pytest.raises(ValidationError):
        members.create_member(Member(id=0, name="  "))


def test_update_keeps_date_added(members):
    created = members.create_member(Member(id=0, name="Budi"))
    members.update_member(Member(id=created.id, name="Budi Santoso", address="Jl. Merdeka"))

    updated = members.get_member(created.id)
    assert updated.name == "Budi Santoso"
    assert updated.address == "Jl. Merdeka"
    assert updated.date_added == created.date_added


def test_sentinel_cannot_be_changed(members):
    with pytest.raises(ValidationError):
        members.delete_member(0)
    with pytest.raises(ValidationError):
        members.update_member(Member(id=0, name="Bukan Umum"))
    assert members.get_member(0) == GENERAL_PUBLIC


def test_delete_member(members):
    created = members.create_member(Member(id=0, name="Budi"))
    members.delete_member(created.id)
    with pytest.raises(NotFoundError):
        members.get_member(created.id)
    with pytest.raises(NotFoundError):
        members.delete_member(created.id)


def test_ids_not_reused_after_delete_of_earlier_member(members):
    members.create_member(Member(id=0, name="A"))
    b = members.create_member(Member(id=0, name="B"))
    members.delete_member(1)
    c = members.create_member(Member(id=0, name="C"))
    assert c.id == b.id + 1
