"""Text extraction for uploaded PDF, DOCX and plain-text documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import PurePath

from ai_gateway.errors import UnsupportedDocumentError
from ai_gateway.obs.logging import get_logger
from ai_gateway.types import ParsedDocument

logger = get_logger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class Parser(ABC):
    """Base parser interface used by the upload pipeline."""

    mime_types: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    format_name: str = ""

    def parse(self, data: bytes, *, filename: str) -> ParsedDocument:
        text = self.extract_text(data)
        if not text or not text.strip():
            raise UnsupportedDocumentError(self.empty_message)
        return ParsedDocument(
            source_id=filename,
            text=text,
            metadata={"source": filename, "format": self.format_name},
        )

    @property
    def empty_message(self) -> str:
        return f"Could not extract text from the {self.format_name or 'uploaded'} file."

    @abstractmethod
    def extract_text(self, data: bytes) -> str:
        """Return the raw text of the document."""


class TextParser(Parser):
    mime_types = ("text/plain", "text/markdown")
    extensions = (".txt", ".md")
    format_name = "text"

    @property
    def empty_message(self) -> str:
        return "The text file appears to be empty."

    def extract_text(self, data: bytes) -> str:
        if data.startswith(b"\xef\xbb\xbf"):
            return data.decode("utf-8-sig")
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data.decode("latin-1")


class PdfParser(Parser):
    mime_types = ("application/pdf",)
    extensions = (".pdf",)
    format_name = "pdf"

    @property
    def empty_message(self) -> str:
        return (
            "Could not extract text from PDF. The file might be empty, corrupted, "
            "or password protected."
        )

    def extract_text(self, data: bytes) -> str:
        import fitz

        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise UnsupportedDocumentError(f"Failed to process PDF: {exc}") from exc
        with document:
            if document.needs_pass:
                raise UnsupportedDocumentError("Failed to process PDF: the file is password protected.")
            return "\n".join(page.get_text() for page in document)


class DocxParser(Parser):
    mime_types = (DOCX_MIME,)
    extensions = (".docx",)
    format_name = "docx"

    @property
    def empty_message(self) -> str:
        return "Could not extract text from DOCX. The file might be empty or corrupted."

    def extract_text(self, data: bytes) -> str:
        from docx import Document

        try:
            document = Document(BytesIO(data))
        except Exception as exc:
            raise UnsupportedDocumentError(f"Failed to process DOCX: {exc}") from exc

        parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))
        return "\n".join(parts)


class ParserRegistry:
    """Maps MIME type (or, failing that, file extension) to a parser."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._by_mime: dict[str, Parser] = {}
        self._by_extension: dict[str, Parser] = {}
        for parser in parsers or [TextParser(), PdfParser(), DocxParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for mime_type in parser.mime_types:
            self._by_mime[mime_type] = parser
        for extension in parser.extensions:
            self._by_extension[extension] = parser

    def parse_upload(
        self, data: bytes, *, filename: str, content_type: str | None
    ) -> ParsedDocument:
        mime_type = (content_type or "").split(";", 1)[0].strip().lower()
        parser = self._by_mime.get(mime_type) or self._by_extension.get(
            PurePath(filename).suffix.lower()
        )
        if parser is None:
            raise UnsupportedDocumentError(
                f"Unsupported file type: {content_type or 'unknown'}. "
                "Please upload PDF, DOCX, or TXT files."
            )
        logger.info("parsing upload filename=%s format=%s", filename, parser.format_name)
        return parser.parse(data, filename=filename)
