"""Tests for the bucketacl command line."""

import json

import pytest

from bucketacl import cli
from bucketacl.client import ACLClient, ACLResponse
from bucketacl.errors import MalformedACL, ValidationError
from bucketacl.inputs import CannedACL, ExplicitACL, GrantHeaders
from bucketacl.models import Grant, Grantee, Owner, Permission


class RecordingTransport:
    def __init__(self, response: ACLResponse) -> None:
        self.response = response
        self.requests = []

    async def send(self, request):
        self.requests.append(request)
        return self.response


@pytest.fixture
def fake_client(monkeypatch):
    """Route ACLClient.from_config to a client over a recording transport."""
    body = json.dumps(
        {
            "Owner": {"ID": "owner-id"},
            "Grants": [{"Grantee": {"Type": "Group", "Canned": "AllUsers"}, "Permission": "READ"}],
        }
    ).encode()
    transport = RecordingTransport(ACLResponse(200, {"x-amz-request-id": "r-1"}, body))
    monkeypatch.setattr(
        ACLClient, "from_config", classmethod(lambda cls, config, auth=None: cls(transport, config))
    )
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    return transport


class TestParseArgs:
    """Tests for parse_args()."""

    def test_get_object(self):
        args = cli.parse_args(["get-object-acl", "b", "k", "--version-id", "v1"])
        assert (args.command, args.bucket, args.key, args.version_id) == (
            "get-object-acl",
            "b",
            "k",
            "v1",
        )

    def test_put_bucket_grant_options(self):
        args = cli.parse_args(["put-bucket-acl", "b", "--grant-read-acp", "id=1"])
        assert args.grant_read_acp == "id=1"
        assert args.acl is None

    def test_global_options(self):
        args = cli.parse_args(
            ["--endpoint", "http://x", "--log-format", "json", "get-bucket-acl", "b"]
        )
        assert args.endpoint == "http://x"
        assert args.log_format == "json"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])


class TestAclInputFromArgs:
    """Tests for acl_input_from_args()."""

    def test_canned(self):
        args = cli.parse_args(["put-bucket-acl", "b", "--acl", "public-read"])
        assert cli.acl_input_from_args(args) == CannedACL("public-read")

    def test_grant_headers(self):
        args = cli.parse_args(["put-bucket-acl", "b", "--grant-write", "id=1,id=2"])
        acl = cli.acl_input_from_args(args)
        assert isinstance(acl, GrantHeaders)
        assert acl.grants[Permission.WRITE] == (Grantee.account("1"), Grantee.account("2"))

    def test_policy_file(self, tmp_path):
        path = tmp_path / "policy.json"
        path.write_text(
            json.dumps(
                {
                    "Owner": {"ID": "o"},
                    "Grants": [
                        {"Grantee": {"Type": "CanonicalUser", "ID": "1"}, "Permission": "READ"}
                    ],
                }
            )
        )
        args = cli.parse_args(["put-object-acl", "b", "k", "--policy", str(path)])
        assert cli.acl_input_from_args(args) == ExplicitACL(
            (Grant(Grantee.account("1"), Permission.READ),), Owner("o")
        )

    def test_bad_policy_file(self, tmp_path):
        path = tmp_path / "policy.json"
        path.write_text('{"Grants": [{"Permission": "READ"}]}')
        args = cli.parse_args(["put-object-acl", "b", "k", "--policy", str(path)])
        with pytest.raises(MalformedACL):
            cli.acl_input_from_args(args)

    def test_policy_and_canned_conflict(self, tmp_path):
        path = tmp_path / "policy.json"
        path.write_text('{"Grants": []}')
        args = cli.parse_args(["put-bucket-acl", "b", "--policy", str(path), "--acl", "private"])
        with pytest.raises(ValidationError):
            cli.acl_input_from_args(args)

    def test_nothing_given(self):
        with pytest.raises(ValidationError):
            cli.acl_input_from_args(cli.parse_args(["put-bucket-acl", "b"]))


class TestMain:
    """Tests for main()."""

    def test_get_prints_policy(self, fake_client, capsys):
        cli.main(["get-bucket-acl", "some-bucket"])
        out = json.loads(capsys.readouterr().out)
        assert out["Owner"] == {"ID": "owner-id"}
        assert out["Grants"][0]["Grantee"]["Canned"] == "AllUsers"
        assert fake_client.requests[0].operation == "GetBucketAcl"

    def test_put_object_acl(self, fake_client, capsys):
        cli.main(["put-object-acl", "some-bucket", "k", "--acl", "private", "--version-id", "v1"])
        request = fake_client.requests[0]
        assert request.operation == "PutObjectAcl"
        assert request.headers == {"x-amz-acl": "private"}
        assert request.query == {"acl": "", "versionId": "v1"}
        assert capsys.readouterr().out == ""

    def test_conflict_exits_without_request(self, fake_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["put-bucket-acl", "some-bucket", "--acl", "private", "--grant-read", "id=1"])
        assert exc_info.value.code == 1
        assert fake_client.requests == []

    def test_service_error_exits(self, fake_client):
        fake_client.response = ACLResponse(404, {}, b'{"Code": "NoSuchBucket"}')
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["get-bucket-acl", "some-bucket"])
        assert exc_info.value.code == 1

    def test_missing_config_file(self, tmp_path, fake_client):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--config", str(tmp_path / "nope.yaml"), "get-bucket-acl", "b"])
        assert exc_info.value.code == 1

    def test_missing_policy_file_exits(self, tmp_path, fake_client, caplog):
        missing = tmp_path / "missing.json"
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["put-bucket-acl", "some-bucket", "--policy", str(missing)])
        assert exc_info.value.code == 1
        assert fake_client.requests == []
        assert "missing.json" in caplog.text
