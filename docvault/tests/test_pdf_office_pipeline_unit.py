import subprocess
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from docvault.services.documents.errors import (
    ConversionFailed,
    EmptyBuffer,
    TimeoutExceeded,
    UnsupportedDocument,
)
from docvault.services.office_to_pdf import SofficeConverter
from docvault.services.pdf_to_png import PdftoppmRasterizer
from docvault.services.preview.office_backend import OfficeBackend
from docvault.services.preview.pdf_backend import PdfBackend, count_pages
from docvault.services.preview.process import ToolResult, run_tool
from docvault.services.preview.workspace import TempWorkspace
from docvault.tests._fixtures import FakeConverter, FakeRasterizer, make_pdf, make_png, png_size
from docvault.tests._util_tempdir import cleanup_dir, make_temp_dir


class TestPdfBackendUnit(unittest.TestCase):
    def test_first_page_is_bounded(self):
        rasterizer = FakeRasterizer(make_png(1700, 2200))
        out = PdfBackend(rasterizer, max_edge=800).render(make_pdf(3))
        self.assertEqual(rasterizer.calls, 1)
        w, h = png_size(out)
        self.assertLessEqual(max(w, h), 800)
        self.assertEqual(h, 800)

    def test_zero_pages_rejected_before_rasterizing(self):
        rasterizer = FakeRasterizer()
        self.assertEqual(count_pages(make_pdf(0)), 0)
        with self.assertRaises(UnsupportedDocument):
            PdfBackend(rasterizer).render(make_pdf(0))
        with self.assertRaises(UnsupportedDocument):
            PdfBackend(rasterizer).render(b"%PDF-1.4 broken")
        with self.assertRaises(EmptyBuffer):
            PdfBackend(rasterizer).render(b"")
        self.assertEqual(rasterizer.calls, 0)


class TestPdftoppmRasterizerUnit(unittest.TestCase):
    def test_rasterize_runs_single_page_and_cleans_workspace(self):
        seen = {}

        def fake_run(cmd, *, timeout_s, cwd=None, env=None):
            seen["cmd"] = cmd
            seen["cwd"] = Path(cwd)
            seen["timeout_s"] = timeout_s
            Path(cmd[-1] + ".png").write_bytes(make_png(20, 10))
            return ToolResult(returncode=0, stdout="", stderr="")

        with patch("docvault.services.pdf_to_png.run_tool", side_effect=fake_run):
            png = PdftoppmRasterizer(executable="pdftoppm", dpi=100, timeout_s=5).rasterize(make_pdf())

        self.assertEqual(png_size(png), (20, 10))
        cmd = seen["cmd"]
        self.assertEqual(cmd[:9], ["pdftoppm", "-png", "-f", "1", "-l", "1", "-r", "100", "-singlefile"])
        self.assertTrue(cmd[-2].endswith("input.pdf"))
        self.assertEqual(seen["timeout_s"], 5)
        self.assertFalse(seen["cwd"].exists())

    def test_failures(self):
        rasterizer = PdftoppmRasterizer(executable="pdftoppm")
        with patch(
            "docvault.services.pdf_to_png.run_tool",
            return_value=ToolResult(returncode=1, stdout="", stderr="Syntax Error"),
        ):
            with self.assertRaises(ConversionFailed):
                rasterizer.rasterize(make_pdf())

        with patch("docvault.services.pdf_to_png.run_tool", return_value=ToolResult(0, "", "")):
            with self.assertRaises(ConversionFailed):
                rasterizer.rasterize(make_pdf())

        with patch("docvault.services.pdf_to_png.find_pdftoppm", return_value=None):
            with self.assertRaises(ConversionFailed):
                PdftoppmRasterizer().rasterize(make_pdf())


class TestSofficeConverterUnit(unittest.TestCase):
    def test_convert_uses_private_profile(self):
        seen = {}

        def fake_run(cmd, *, timeout_s, cwd=None, env=None):
            seen["cmd"] = cmd
            outdir = Path(cmd[cmd.index("--outdir") + 1])
            seen["workdir"] = outdir.parent
            (outdir / "input.pdf").write_bytes(b"%PDF-1.4 converted")
            return ToolResult(0, "", "")

        with patch("docvault.services.office_to_pdf.run_tool", side_effect=fake_run):
            pdf = SofficeConverter(executable="soffice").convert_to_pdf(b"docx-bytes", suffix=".DOCX")

        self.assertEqual(pdf, b"%PDF-1.4 converted")
        cmd = seen["cmd"]
        self.assertIn("--headless", cmd)
        self.assertTrue(cmd[1].startswith("-env:UserInstallation=file:"))
        self.assertTrue(cmd[-1].endswith("input.docx"))
        self.assertFalse(seen["workdir"].exists())

    def test_timeout_propagates_and_cleans_up(self):
        seen = {}

        def fake_run(cmd, *, timeout_s, cwd=None, env=None):
            seen["workdir"] = Path(cwd).parent
            raise TimeoutExceeded("soffice exceeded 1s")

        with patch("docvault.services.office_to_pdf.run_tool", side_effect=fake_run):
            with self.assertRaises(TimeoutExceeded):
                SofficeConverter(executable="soffice", timeout_s=1).convert_to_pdf(b"x", suffix=".doc")
        self.assertFalse(seen["workdir"].exists())

    def test_missing_output(self):
        with patch("docvault.services.office_to_pdf.run_tool", return_value=ToolResult(0, "", "")):
            with self.assertRaises(ConversionFailed):
                SofficeConverter(executable="soffice").convert_to_pdf(b"x", suffix=".xlsx")


class TestOfficeBackendUnit(unittest.TestCase):
    def test_office_goes_through_pdf_backend(self):
        converter = FakeConverter()
        backend = OfficeBackend(converter, PdfBackend(FakeRasterizer(make_png(50, 40))))
        out = backend.render(
            b"PK...",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        )
        self.assertEqual(png_size(out), (50, 40))
        self.assertEqual(converter.suffixes, [".pptx"])

    def test_unexpected_errors_become_conversion_failures(self):
        backend = OfficeBackend(FakeConverter(error=RuntimeError("lo crashed")), PdfBackend(FakeRasterizer()))
        with self.assertRaises(ConversionFailed):
            backend.render(b"x", "application/msword")

        backend = OfficeBackend(FakeConverter(error=TimeoutExceeded("slow")), PdfBackend(FakeRasterizer()))
        with self.assertRaises(TimeoutExceeded):
            backend.render(b"x", "application/msword")


class TestProcessAndWorkspaceUnit(unittest.TestCase):
    def test_timeout_kills_process_group(self):
        proc = MagicMock()
        proc.pid = 4242
        proc.communicate.side_effect = [subprocess.TimeoutExpired(cmd="pdftoppm", timeout=1), ("", "")]

        with patch("docvault.services.preview.process.subprocess.Popen", return_value=proc) as popen, patch(
            "docvault.services.preview.process._kill_tree"
        ) as kill:
            with self.assertRaises(TimeoutExceeded):
                run_tool(["/usr/bin/pdftoppm", "-v"], timeout_s=1)

        kill.assert_called_once_with(proc)
        self.assertEqual(popen.call_args.kwargs["shell"], False)

    def test_missing_executable(self):
        with patch("docvault.services.preview.process.subprocess.Popen", side_effect=FileNotFoundError("nope")):
            with self.assertRaises(ConversionFailed):
                run_tool(["no-such-tool"], timeout_s=1)

    def test_workspace_removed_on_error(self):
        base = make_temp_dir(prefix="docvault_ws")
        try:
            with self.assertRaises(ValueError):
                with TempWorkspace(prefix="t", base_dir=base) as wd:
                    (wd / "f.txt").write_text("x")
                    created = wd
                    raise ValueError("boom")
            self.assertFalse(created.exists())
        finally:
            cleanup_dir(base)

    def test_cleanup_failure_is_logged_not_raised(self):
        base = make_temp_dir(prefix="docvault_ws")
        try:
            with patch("docvault.services.preview.workspace.shutil.rmtree", side_effect=PermissionError("locked")):
                with self.assertLogs("docvault.services.preview.workspace", level="ERROR"):
                    with TempWorkspace(prefix="t", base_dir=base):
                        pass
        finally:
            cleanup_dir(base)


if __name__ == "__main__":
    unittest.main()
