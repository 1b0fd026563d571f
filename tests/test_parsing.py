import tempfile
import unittest
from pathlib import Path

from docx import Document

from app.parsing.models import TextSection
from app.parsing.parse import DocumentParseError, parse_document
from app.parsing.sections import convert_to_latex, escape_latex, extract_sections_from_text
from app.services.resume_import import parse_resume_upload

RESUME_TEXT = (
    "John Doe\n"
    "Summary\n"
    "Builder of things\n"
    "Experience\n"
    "Acme 2020-2023\n"
    "Skills\n"
    "Python & SQL"
)


def _docx_bytes(paragraphs: list[str]) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "resume.docx"
        document.save(str(path))
        return path.read_bytes()


class ParsingFacadeTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_parse_txt_returns_stable_parsed_doc(self):
        content = "Line one\n- Bullet item\nLine three"
        path = self.tmp_dir / "resume.txt"
        path.write_text(content, encoding="utf-8")

        parsed = parse_document(str(path))
        self.assertEqual(parsed.source_type, "txt")
        self.assertEqual(parsed.text, content)
        self.assertTrue(parsed.doc_id)
        self.assertEqual(parse_document(path).doc_id, parsed.doc_id)

    def test_parse_docx_paragraphs(self):
        path = self.tmp_dir / "resume.docx"
        path.write_bytes(_docx_bytes(["Jane Doe", "", "Experience", "Acme"]))

        parsed = parse_document(path)
        self.assertEqual(parsed.source_type, "docx")
        self.assertEqual(parsed.text, "Jane Doe\nExperience\nAcme")
        self.assertEqual(len(parsed.blocks), 3)

    def test_broken_pdf_becomes_a_warning(self):
        path = self.tmp_dir / "resume.pdf"
        path.write_bytes(b"not really a pdf")

        parsed = parse_document(path)
        self.assertEqual(parsed.text, "")
        self.assertTrue(parsed.parsing_warnings)

    def test_legacy_doc_and_unknown_types_are_rejected(self):
        for name in ("resume.doc", "resume.odt"):
            path = self.tmp_dir / name
            path.write_bytes(b"data")
            with self.assertRaises(DocumentParseError):
                parse_document(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            parse_document(self.tmp_dir / "nope.pdf")


class SectionDetectionTests(unittest.TestCase):
    def test_lines_are_grouped_under_canonical_headings(self):
        sections = extract_sections_from_text(RESUME_TEXT)
        self.assertEqual(
            [(s.name, s.content) for s in sections],
            [
                ("Summary", "Builder of things"),
                ("Work Experience", "Acme 2020-2023"),
                ("Skills", "Python & SQL"),
            ],
        )

    def test_long_lines_are_never_headings(self):
        text = "Skills\nI have experience with many tools across a very long sentence here."
        sections = extract_sections_from_text(text)
        self.assertEqual(len(sections), 1)
        self.assertIn("many tools", sections[0].content)

    def test_empty_text(self):
        self.assertEqual(extract_sections_from_text(""), [])

    def test_convert_to_latex_escapes_content(self):
        latex = convert_to_latex([TextSection(name="Summary", content="100% R&D_lead #1")])
        self.assertTrue(latex.startswith("\\documentclass{article}"))
        self.assertTrue(latex.endswith("\\end{document}"))
        self.assertIn("% ===== SUMMARY =====", latex)
        self.assertIn("\\section*{Professional Summary}", latex)
        self.assertIn("100\\% R\\&D\\_lead \\#1", latex)

    def test_escape_backslash_and_braces(self):
        self.assertEqual(escape_latex("a\\b{c}"), "a\\textbackslash{}b\\{c\\}")


class ResumeUploadTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.upload_dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_docx_upload_is_parsed_and_temp_file_removed(self):
        content = _docx_bytes(RESUME_TEXT.split("\n"))
        result = parse_resume_upload("cv.docx", content, upload_dir=self.upload_dir)

        self.assertIn("Builder of things", result.text)
        self.assertEqual(result.sections[0], {"name": "Summary", "content": "Builder of things"})
        self.assertIn("\\section*{Skills}", result.latex_content)
        self.assertEqual(list(self.upload_dir.iterdir()), [])

    def test_unreadable_upload_raises_and_cleans_up(self):
        with self.assertRaises(DocumentParseError):
            parse_resume_upload("cv.pdf", b"garbage", upload_dir=self.upload_dir)
        self.assertEqual(list(self.upload_dir.iterdir()), [])

    def test_legacy_doc_upload_raises(self):
        with self.assertRaises(DocumentParseError):
            parse_resume_upload("cv.doc", b"\xd0\xcf\x11\xe0", upload_dir=self.upload_dir)
        self.assertEqual(list(self.upload_dir.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
