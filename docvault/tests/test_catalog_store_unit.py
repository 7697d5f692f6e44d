import os
import sqlite3
import unittest

from docvault.database.schema.ensure import ensure_schema
from docvault.services.catalog.store import SqliteCatalogStore
from docvault.services.documents.models import DocumentRecord
from docvault.tests._util_tempdir import cleanup_dir, make_temp_dir


def _record(doc_id: str, logical_name: str, version: int, created_at_ms: int, current: bool) -> DocumentRecord:
    return DocumentRecord(
        doc_id=doc_id,
        logical_name=logical_name,
        storage_key=f"{logical_name}/{doc_id}",
        version=version,
        size_bytes=10,
        mime_type="text/plain",
        extension=".txt",
        is_current=current,
        created_at_ms=created_at_ms,
    )


class TestCatalogStoreUnit(unittest.TestCase):
    def setUp(self):
        self._td = make_temp_dir(prefix="docvault_catalog")
        self.db_path = os.path.join(str(self._td), "catalog.db")
        ensure_schema(self.db_path)
        ensure_schema(self.db_path)
        self.store = SqliteCatalogStore(db_path=self.db_path)

    def tearDown(self):
        cleanup_dir(self._td)

    def test_find_orders_and_filters(self):
        self.store.insert(_record("d1", "a.txt", 1, 100, False))
        self.store.insert(_record("d2", "a.txt", 2, 200, True))
        self.store.insert(_record("d3", "b.txt", 1, 300, True))

        self.assertEqual([r.doc_id for r in self.store.find()], ["d3", "d2", "d1"])
        self.assertEqual([r.doc_id for r in self.store.find("a.txt")], ["d2", "d1"])
        self.assertEqual([r.doc_id for r in self.store.find("a.txt", newest_first=False)], ["d1", "d2"])

        got = self.store.find_by_id("d2")
        self.assertTrue(got.is_current)
        self.assertEqual(got.to_dict()["storage_key"], "a.txt/d2")
        self.assertIsNone(self.store.find_by_id("nope"))

    def test_update_many_and_delete(self):
        self.store.insert(_record("d1", "a.txt", 1, 100, True))
        self.assertEqual(self.store.update_many(logical_name="a.txt", is_current=False), 1)
        self.assertFalse(self.store.find_by_id("d1").is_current)
        self.assertEqual(self.store.update_many(logical_name="a.txt", is_current=True, doc_id="other"), 0)

        self.assertTrue(self.store.delete_by_id("d1"))
        self.assertFalse(self.store.delete_by_id("d1"))

    def test_transaction_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.store.transaction() as tx:
                self.store.insert(_record("d9", "z.txt", 1, 1, True), conn=tx)
                raise RuntimeError("boom")
        self.assertIsNone(self.store.find_by_id("d9"))

    def test_last_version_only_moves_up(self):
        self.assertEqual(self.store.last_version("a.txt"), 0)
        self.store.raise_last_version("a.txt", 3)
        self.store.raise_last_version("a.txt", 2)
        self.assertEqual(self.store.last_version("a.txt"), 3)
        self.assertEqual(self.store.last_version("b.txt"), 0)

    def test_schema_upgrade_seeds_counters_from_existing_rows(self):
        self.store.insert(_record("d1", "a.txt", 1, 100, False))
        self.store.insert(_record("d2", "a.txt", 5, 200, True))
        self.store.insert(_record("d3", "b.txt", 2, 300, True))
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("DROP TABLE version_counters")
            conn.commit()
        finally:
            conn.close()

        ensure_schema(self.db_path)
        self.assertEqual(self.store.last_version("a.txt"), 5)
        self.assertEqual(self.store.last_version("b.txt"), 2)


if __name__ == "__main__":
    unittest.main()
