from domain.access.catalog import ADMINISTRATOR_GROUP, DEFAULT_GROUPS, RIGHT_CATALOG
from domain.access.permissions import PermissionSet, Rights


def test_wildcard_satisfies_any_right():
    perms = PermissionSet.of(["*"])
    assert perms.satisfies(Rights.CREATE_CONTENT)
    assert perms.satisfies("some_future_right")
    assert perms.is_administrator


def test_explicit_rights_only():
    perms = PermissionSet.of([Rights.READ_CONTENT, Rights.LIKE])
    assert perms.satisfies(Rights.LIKE)
    assert not perms.satisfies(Rights.CREATE_CONTENT)
    assert not perms.is_administrator
    assert Rights.READ_CONTENT in perms


def test_empty_set_satisfies_nothing():
    perms = PermissionSet.empty()
    assert not perms
    assert not perms.satisfies(Rights.READ_CONTENT)
    assert not perms.satisfies(Rights.ALL)


def test_catalog_groups_reference_known_rights():
    known = {name for name, _ in RIGHT_CATALOG}
    for group in DEFAULT_GROUPS:
        assert set(group.rights) <= known


def test_administrator_group_holds_wildcard():
    admin = next(g for g in DEFAULT_GROUPS if g.name == ADMINISTRATOR_GROUP)
    assert admin.rights == (Rights.ALL,)
