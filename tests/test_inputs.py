"""Tests for ACL input variants and style resolution."""

import pytest

from bucketacl.errors import MalformedACL, ValidationError
from bucketacl.headers import ALL_USERS_URI
from bucketacl.inputs import CannedACL, ExplicitACL, GrantHeaders, acl_input_from_fields
from bucketacl.models import CannedACLType, CannedGroup, Grant, Grantee, Owner, Permission


class TestExplicitACL:
    """Tests for ExplicitACL."""

    def test_grants_become_tuple(self):
        grant = Grant(Grantee.account("1"), Permission.READ)
        acl = ExplicitACL([grant])
        assert acl.grants == (grant,)
        assert acl.owner is None

    def test_non_grant_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ExplicitACL(["id=1"])
        assert exc_info.value.field == "grants[0]"

    def test_empty_grant_list_allowed(self):
        assert ExplicitACL((), Owner("o")).grants == ()


class TestCannedACL:
    """Tests for CannedACL."""

    def test_keyword_string_coerced(self):
        assert CannedACL("public-read").acl_type is CannedACLType.PUBLIC_READ

    def test_unknown_keyword_rejected(self):
        with pytest.raises(ValidationError):
            CannedACL("log-delivery-write")


class TestGrantHeaders:
    """Tests for GrantHeaders."""

    def test_tokens_and_grantees_mixed(self):
        headers = GrantHeaders({Permission.READ: ["id=1", Grantee.group("AllUsers")]})
        assert headers.grants[Permission.READ] == (
            Grantee.account("1"),
            Grantee.group(CannedGroup.ALL_USERS),
        )

    def test_single_string_with_several_tokens(self):
        headers = GrantHeaders({"WRITE": f"id=1, uri={ALL_USERS_URI}"})
        assert len(headers.grants[Permission.WRITE]) == 2

    def test_empty_lists_dropped(self):
        headers = GrantHeaders({Permission.READ: ["id=1"], Permission.WRITE: []})
        assert list(headers.grants) == [Permission.READ]

    def test_all_empty_rejected(self):
        with pytest.raises(ValidationError):
            GrantHeaders({Permission.READ: []})

    def test_bad_token_is_validation_error(self):
        """A malformed caller token is reported as a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            GrantHeaders({Permission.READ: ["foo=bar"]})
        assert exc_info.value.field == "grant-read"
        assert isinstance(exc_info.value.__cause__, MalformedACL)

    def test_unknown_permission_rejected(self):
        with pytest.raises(ValidationError):
            GrantHeaders({"LIST": ["id=1"]})

    def test_from_pairs_concatenates_repeated_permission(self):
        """A second list for the same permission is appended, not an error."""
        headers = GrantHeaders.from_pairs(
            [
                (Permission.READ, ["id=1"]),
                (Permission.WRITE, ["id=2"]),
                ("READ", ["id=3", "id=1"]),
            ]
        )
        assert headers.grants[Permission.READ] == (
            Grantee.account("1"),
            Grantee.account("3"),
            Grantee.account("1"),
        )

    def test_from_headers_case_insensitive(self):
        headers = GrantHeaders.from_headers(
            {"X-Amz-Grant-Read": "id=1", "x-amz-grant-full-control": "id=2", "Other": "x"}
        )
        assert headers.grants[Permission.READ] == (Grantee.account("1"),)
        assert headers.grants[Permission.FULL_CONTROL] == (Grantee.account("2"),)

    def test_from_headers_custom_prefix(self):
        headers = GrantHeaders.from_headers({"x-tos-grant-write-acp": "id=9"}, prefix="x-tos-")
        assert headers.grants[Permission.WRITE_ACP] == (Grantee.account("9"),)

    def test_from_headers_none_present(self):
        assert GrantHeaders.from_headers({"content-type": "text/plain"}) is None

    def test_from_headers_bad_token_is_malformed(self):
        with pytest.raises(MalformedACL):
            GrantHeaders.from_headers({"x-amz-grant-read": "foo=bar"})

    def test_as_grants_in_emission_order(self):
        headers = GrantHeaders({Permission.WRITE: ["id=1"], Permission.FULL_CONTROL: ["id=2"]})
        assert headers.as_grants() == (
            Grant(Grantee.account("2"), Permission.FULL_CONTROL),
            Grant(Grantee.account("1"), Permission.WRITE),
        )

    def test_equality(self):
        assert GrantHeaders({"READ": "id=1"}) == GrantHeaders({Permission.READ: ["id=1"]})


class TestAclInputFromFields:
    """Tests for acl_input_from_fields()."""

    def test_grants_only(self):
        grant = Grant(Grantee.account("1"), Permission.READ)
        result = acl_input_from_fields(grants=[grant], owner=Owner("o"))
        assert result == ExplicitACL((grant,), Owner("o"))

    def test_canned_only(self):
        assert acl_input_from_fields(acl="private") == CannedACL(CannedACLType.PRIVATE)

    def test_header_shorthand_only(self):
        result = acl_input_from_fields(
            grant_read="id=123",
            grant_write="id=123",
            grant_read_acp="id=123",
            grant_write_acp="id=123",
            grant_full_control="id=123",
        )
        assert isinstance(result, GrantHeaders)
        assert set(result.grants) == set(Permission)

    def test_grants_and_canned_rejected(self):
        grant = Grant(Grantee.account("1"), Permission.READ)
        with pytest.raises(ValidationError) as exc_info:
            acl_input_from_fields(grants=[grant], acl="private")
        assert "grants" in exc_info.value.message
        assert "acl" in exc_info.value.message

    def test_canned_and_headers_rejected(self):
        with pytest.raises(ValidationError):
            acl_input_from_fields(acl="public-read", grant_read="id=1")

    def test_all_three_rejected(self):
        with pytest.raises(ValidationError):
            acl_input_from_fields(grants=[], acl="public-read", grant_write="id=1")

    def test_nothing_rejected(self):
        with pytest.raises(ValidationError):
            acl_input_from_fields()

    def test_owner_without_grants_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            acl_input_from_fields(owner=Owner("o"), acl="private")
        assert exc_info.value.field == "owner"

    def test_empty_header_fields_ignored(self):
        assert acl_input_from_fields(acl="private", grant_read="") == CannedACL("private")


class TestGrantHeadersInputs:
    """Entry shapes accepted by GrantHeaders."""

    def test_hash_ignores_insertion_order(self):
        a = GrantHeaders({Permission.READ: ["id=1"], Permission.WRITE: ["id=2"]})
        b = GrantHeaders({Permission.WRITE: ["id=2"], Permission.READ: ["id=1"]})
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_bare_grantee_accepted(self):
        headers = GrantHeaders({Permission.READ: Grantee.account("1")})
        assert headers.grants[Permission.READ] == (Grantee.account("1"),)

    def test_non_iterable_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            GrantHeaders({Permission.READ: 123})
        assert exc_info.value.field == "grant-read"

    def test_non_string_entry_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            GrantHeaders({Permission.WRITE: ["id=1", 42]})
        assert exc_info.value.field == "grant-write"

    def test_from_fields_bare_grantee(self):
        result = acl_input_from_fields(grant_full_control=Grantee.group("AllUsers"))
        assert result.grants[Permission.FULL_CONTROL] == (Grantee.group(CannedGroup.ALL_USERS),)
