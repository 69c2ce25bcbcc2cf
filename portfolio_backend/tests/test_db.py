import os
import tempfile
import unittest

from portfolio_backend.db import InMemoryDocumentStore, SqlDocumentStore, new_id
from portfolio_backend.errors import DuplicateKeyError, InvalidIdentifierError


class DocumentStoreContract:
    """Behavior shared by every DocumentStore implementation."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()

    def tearDown(self):
        self.store.close()

    def test_insert_assigns_id_and_timestamps(self):
        doc = self.store.insert("skills", {"title": "Python"})
        self.assertRegex(doc["_id"], r"^[0-9a-f]{32}$")
        self.assertIn("createdAt", doc)
        self.assertIn("updatedAt", doc)
        self.assertEqual(self.store.get("skills", doc["_id"])["title"], "Python")

    def test_get_is_scoped_to_collection(self):
        doc = self.store.insert("skills", {"title": "Python"})
        self.assertIsNone(self.store.get("projects", doc["_id"]))

    def test_malformed_id(self):
        with self.assertRaises(InvalidIdentifierError) as ctx:
            self.store.get("skills", "123")
        self.assertEqual(ctx.exception.message, "Invalid _id")

    def test_find_with_criteria_and_sort(self):
        self.store.insert("experiences", {"date": "2019", "company": "A"})
        self.store.insert("experiences", {"date": "2024", "company": "B"})
        self.store.insert("experiences", {"date": "2021", "company": "A"})

        newest_first = self.store.find("experiences", sort=("date", -1))
        self.assertEqual([d["date"] for d in newest_first], ["2024", "2021", "2019"])

        at_a = self.store.find("experiences", company="A")
        self.assertEqual(sorted(d["date"] for d in at_a), ["2019", "2021"])
        self.assertEqual(self.store.find_one("experiences", company="B")["date"], "2024")
        self.assertIsNone(self.store.find_one("experiences", company="C"))

    def test_update_merges_changes(self):
        doc = self.store.insert("skills", {"title": "Python", "proficiency": 40})
        updated = self.store.update("skills", doc["_id"], {"proficiency": 80})
        self.assertEqual(updated["proficiency"], 80)
        self.assertEqual(updated["title"], "Python")
        self.assertEqual(self.store.get("skills", doc["_id"])["proficiency"], 80)

    def test_update_missing(self):
        self.assertIsNone(self.store.update("skills", new_id(), {"title": "x"}))

    def test_delete(self):
        doc = self.store.insert("skills", {"title": "Python"})
        self.assertTrue(self.store.delete("skills", doc["_id"]))
        self.assertFalse(self.store.delete("skills", doc["_id"]))
        self.assertEqual(self.store.find("skills"), [])

    def test_unique_email(self):
        first = self.store.insert("users", {"email": "ada@example.com"})
        with self.assertRaises(DuplicateKeyError) as ctx:
            self.store.insert("users", {"email": "ada@example.com"})
        self.assertEqual(ctx.exception.message, "Duplicate email Entered")

        other = self.store.insert("users", {"email": "grace@example.com"})
        with self.assertRaises(DuplicateKeyError):
            self.store.update("users", other["_id"], {"email": "ada@example.com"})
        # Re-saving a document's own email is not a conflict.
        self.store.update("users", first["_id"], {"email": "ada@example.com"})

    def test_email_is_released_by_change_and_delete(self):
        first = self.store.insert("users", {"email": "ada@example.com"})
        self.store.update("users", first["_id"], {"email": "countess@example.com"})
        second = self.store.insert("users", {"email": "ada@example.com"})
        self.assertTrue(self.store.delete("users", second["_id"]))
        self.store.insert("users", {"email": "ada@example.com"})

    def test_returned_documents_are_copies(self):
        doc = self.store.insert("projects", {"technologies": ["Go"]})
        doc["technologies"].append("SQL")
        self.assertEqual(self.store.get("projects", doc["_id"])["technologies"], ["Go"])


class InMemoryDocumentStoreTests(DocumentStoreContract, unittest.TestCase):
    def make_store(self):
        return InMemoryDocumentStore()

    def test_reset(self):
        self.store.insert("skills", {"title": "Python"})
        self.store.reset()
        self.assertEqual(self.store.find("skills"), [])


class SqlDocumentStoreTests(DocumentStoreContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store.
    """

    def make_store(self):
        return SqlDocumentStore("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDocumentStore("")

    def test_unique_email_across_connections(self):
        handle = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        url = f"sqlite+pysqlite:///{handle.name}"
        first, second = SqlDocumentStore(url), SqlDocumentStore(url)
        self.addCleanup(first.close)
        self.addCleanup(second.close)

        first.insert("users", {"email": "ada@example.com"})
        with self.assertRaises(DuplicateKeyError):
            second.insert("users", {"email": "ada@example.com"})
        self.assertEqual(len(first.find("users")), 1)


if __name__ == "__main__":
    unittest.main()
