import os
import tempfile
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

# Keep developer credentials out of the test run and point the module-level
# app at a scratch directory.
for _name in (
    "APP_ENV",
    "VERCEL",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_BUCKET",
    "S3_ENDPOINT",
    "S3_PUBLIC_BASE_URL",
    "ALLOWED_TYPES",
    "MAX_BYTES",
    "VERIFY_IMAGES",
    "ERROR_DSN",
):
    os.environ.pop(_name, None)
os.environ.setdefault("UPLOADS_ROOT_PATH", tempfile.mkdtemp(prefix="uploads-"))

from config import Settings  # noqa: E402

BUCKET = "cms-assets"
PUBLIC_BASE = f"https://{BUCKET}.s3.eu-west-3.amazonaws.com"


class DummyS3Client:
    """In-memory stand-in for the boto3 S3 client."""

    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.calls: list[tuple[str, dict]] = []

    def put_object(self, **params):
        self.calls.append(("put_object", params))
        self.objects[params["Key"]] = {
            "Body": params["Body"],
            "ContentType": params.get("ContentType"),
            "ACL": params.get("ACL"),
            "LastModified": datetime.now(timezone.utc),
        }
        return {"ETag": '"abc"'}

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", {"Bucket": Bucket, "Key": Key}))
        # S3 answers 204 whether or not the key existed
        self.objects.pop(Key, None)
        return {}

    def head_object(self, Bucket, Key):
        self.calls.append(("head_object", {"Bucket": Bucket, "Key": Key}))
        obj = self.objects.get(Key)
        if obj is None:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {
            "ContentLength": len(obj["Body"]),
            "ContentType": obj["ContentType"],
            "LastModified": obj["LastModified"],
        }


@pytest.fixture
def make_settings(tmp_path):
    """Build isolated :class:`Settings` with ``overrides`` applied."""

    def _make(**overrides) -> Settings:
        values = {
            "app_env": "dev",
            "uploads_root_path": str(tmp_path / "uploads"),
            "s3_bucket": BUCKET,
            "s3_region": "eu-west-3",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def cloud_settings(make_settings):
    return make_settings(
        app_env="prod",
        s3_access_key="AKIAEXAMPLE",
        s3_secret_key="secret-example-key",
    )


@pytest.fixture
def s3_client():
    return DummyS3Client()
