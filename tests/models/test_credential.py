from datetime import datetime, timedelta, timezone

from filesdk.models.credential import ScopedCredential


class TestScopedCredential:
    def test_parses_wire_format(self):
        credential = ScopedCredential.model_validate(
            {
                "bucketType": "aws",
                "sas": "secret",
                "expiresOn": "2030-01-01T00:00:00Z",
                "meta": {"containerName": "avatars", "accessKeyId": "AKIA"},
            }
        )
        assert credential.backend_kind == "aws"
        assert credential.secret == "secret"
        assert credential.container_name == "avatars"
        assert credential.hint("accessKeyId") == "AKIA"
        assert credential.hint("missing", "dflt") == "dflt"

    def test_container_name_absent(self):
        credential = ScopedCredential(bucketType="local")
        assert credential.container_name is None
        assert credential.meta == {}

    def test_without_expiry_never_expires(self):
        assert not ScopedCredential(bucketType="aws").is_expired()

    def test_expiry(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        credential = ScopedCredential(bucketType="aws", expiresOn=now + timedelta(minutes=5))
        assert not credential.is_expired(now)
        assert credential.is_expired(now + timedelta(minutes=5))

    def test_naive_expiry_treated_as_utc(self):
        credential = ScopedCredential(bucketType="aws", expiresOn=datetime(2000, 1, 1))
        assert credential.is_expired()
