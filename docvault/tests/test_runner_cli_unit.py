import io
import os
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

from docvault.runtime import runner
from docvault.tests._util_tempdir import cleanup_dir, make_temp_dir


class TestRunnerCliUnit(unittest.TestCase):
    def test_check_tools_reports_missing(self):
        buf = io.StringIO()
        with patch.object(runner, "find_pdftoppm", return_value="/usr/bin/pdftoppm"), patch.object(
            runner, "find_soffice", return_value=None
        ), redirect_stdout(buf):
            with self.assertRaises(SystemExit) as cm:
                runner.main(["check-tools"])
        self.assertEqual(cm.exception.code, 1)
        out = buf.getvalue()
        self.assertIn("[OK] pdftoppm", out)
        self.assertIn("[MISSING] soffice", out)

    def test_init_db_creates_catalog(self):
        td = make_temp_dir(prefix="docvault_cli")
        try:
            db_path = os.path.join(str(td), "nested", "catalog.db")
            buf = io.StringIO()
            with patch.object(runner, "ensure_storage") as storage, redirect_stdout(buf):
                runner.main(["init-db", "--db-path", db_path])
            storage.assert_called_once_with()
            self.assertTrue(os.path.exists(db_path))
            self.assertIn(db_path, buf.getvalue())
        finally:
            cleanup_dir(td)


if __name__ == "__main__":
    unittest.main()
