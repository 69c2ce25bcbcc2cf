import os
import tempfile
import unittest

from botocore.stub import ANY, Stubber

from portfolio_backend.errors import StorageError
from portfolio_backend.storage import InMemoryStorageClient, S3StorageClient


def write_temp(suffix=".png", content=b"image bytes"):
    handle = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
    with handle:
        handle.write(content)
    return handle.name


class S3StorageClientTests(unittest.TestCase):
    def setUp(self):
        self.client = S3StorageClient(
            bucket="portfolio",
            region="us-east-1",
            access_key_id="test",
            secret_access_key="test",
            public_base_url="https://cdn.example.com/",
        )
        self.stub = Stubber(self.client._client)
        self.stub.activate()
        self.path = write_temp()

    def tearDown(self):
        self.stub.deactivate()
        os.unlink(self.path)

    def test_upload_uses_folder_and_desired_id(self):
        self.stub.add_response(
            "put_object",
            {"ETag": '"etag"'},
            {
                "Bucket": "portfolio",
                "Key": ANY,
                "Body": ANY,
                "ContentType": "image/png",
            },
        )
        stored = self.client.upload(
            self.path, "MY PORTFOLIO/SKILL IMAGES", desired_id="Skill_Image_1"
        )
        self.assertRegex(
            stored.storage_id, r"^MY PORTFOLIO/SKILL IMAGES/Skill_Image_1_[0-9a-f]{12}\.png$"
        )
        self.assertEqual(stored.url, f"https://cdn.example.com/{stored.storage_id}")
        self.stub.assert_no_pending_responses()

    def test_same_desired_id_gets_distinct_keys(self):
        keys = []
        for _ in range(2):
            self.stub.add_response(
                "put_object",
                {"ETag": '"etag"'},
                {"Bucket": "portfolio", "Key": ANY, "Body": ANY, "ContentType": "image/png"},
            )
            keys.append(self.client.upload(self.path, "icons", desired_id="Icon_1").storage_id)
        self.assertNotEqual(keys[0], keys[1])
        self.stub.assert_no_pending_responses()

    def test_upload_client_error_becomes_storage_error(self):
        self.stub.add_client_error(
            "put_object", service_error_code="AccessDenied", http_status_code=403
        )
        with self.assertRaises(StorageError) as ctx:
            self.client.upload(self.path, "folder", desired_id="x")
        self.assertIn("AccessDenied", ctx.exception.message)
        self.assertIsNotNone(ctx.exception.cause)

    def test_delete(self):
        self.stub.add_response(
            "delete_object", {}, {"Bucket": "portfolio", "Key": "folder/x.png"}
        )
        self.client.delete("folder/x.png")
        self.stub.assert_no_pending_responses()

    def test_error_status_in_response_is_a_failure(self):
        self.stub.add_response(
            "delete_object",
            {"ResponseMetadata": {"HTTPStatusCode": 500}},
            {"Bucket": "portfolio", "Key": "folder/x.png"},
        )
        with self.assertRaises(StorageError):
            self.client.delete("folder/x.png")

    def test_public_url_without_cdn(self):
        client = S3StorageClient(bucket="portfolio", region="eu-west-1")
        self.assertEqual(
            client.public_url("a/b.png"),
            "https://portfolio.s3.eu-west-1.amazonaws.com/a/b.png",
        )
        client = S3StorageClient(
            bucket="portfolio", region="us-east-1", endpoint="http://minio:9000"
        )
        self.assertEqual(client.public_url("a/b.png"), "http://minio:9000/portfolio/a/b.png")


class InMemoryStorageClientTests(unittest.TestCase):
    def setUp(self):
        self.storage = InMemoryStorageClient()
        self.path = write_temp(content=b"abc")

    def tearDown(self):
        os.unlink(self.path)

    def test_upload_and_delete(self):
        stored = self.storage.upload(self.path, "icons", desired_id="Icon_1")
        self.assertRegex(stored.storage_id, r"^icons/Icon_1_[0-9a-f]{12}\.png$")
        self.assertEqual(self.storage.stored_objects[stored.storage_id], b"abc")
        self.storage.delete(stored.storage_id)
        self.assertEqual(self.storage.deletes, [stored.storage_id])
        self.assertEqual(self.storage.stored_objects, {})

    def test_same_desired_id_keeps_both_objects(self):
        first = self.storage.upload(self.path, "icons", desired_id="Icon_1")
        second = self.storage.upload(self.path, "icons", desired_id="Icon_1")
        self.assertNotEqual(first.storage_id, second.storage_id)
        self.assertEqual(len(self.storage.stored_objects), 2)

    def test_failure_switches(self):
        self.storage.fail_uploads = True
        with self.assertRaises(StorageError):
            self.storage.upload(self.path, "icons")
        self.storage.fail_deletes = True
        with self.assertRaises(StorageError):
            self.storage.delete("icons/anything.png")


if __name__ == "__main__":
    unittest.main()
