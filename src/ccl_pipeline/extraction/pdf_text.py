import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ccl_pipeline.errors import DocumentTextError

logger = logging.getLogger(__name__)

# Readers accept the header anywhere in the first 1024 bytes
PDF_HEADER_WINDOW = 1024


def looks_like_pdf(data: bytes) -> bool:
    return b"%PDF" in data[:PDF_HEADER_WINDOW]


class PdfTextExtractor:
    def extract_text(self, data: bytes) -> str:
        if not looks_like_pdf(data):
            raise DocumentTextError("Archived document is not a PDF",
                                    details={"first_bytes": data[:20].decode("latin-1")})
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PdfReadError, ValueError, KeyError, TypeError, IndexError) as e:
            raise DocumentTextError(f"Could not read PDF: {e}") from e
        text = "\n\n".join(p.strip() for p in pages if p.strip())
        logger.info(f"[pdf] extracted {len(text)} chars from {len(pages)} pages")
        if not text:
            raise DocumentTextError("PDF contains no extractable text")
        return text
