"""Extração de texto de anexos para embeddings."""

import asyncio
import logging
import re
from pathlib import Path

import aiofiles
import fitz
import pdfplumber

from blinko.config.settings import settings
from blinko.utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FILE_URL_PREFIX = "api/file/"

TEXT_EXTENSIONS = {".txt", ".md", ".markdown", ".csv", ".json", ".html", ".htm", ".xml", ".log"}


class AttachmentReader:
    """Resolve o caminho de um anexo armazenado e extrai o texto embeddável."""

    def __init__(self, upload_dir: Path | None = None, max_chars: int | None = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.max_chars = max_chars or settings.attachment_max_chars

    def resolve_path(self, file_path: str) -> Path:
        """
        Converte a URL do anexo (/api/file/x.pdf) em caminho local.

        Raises:
            ValidationError: Se o caminho sair do diretório de uploads.
            NotFoundError: Se o arquivo não existir.
        """
        relative = file_path.strip().lstrip("/")
        if relative.startswith(FILE_URL_PREFIX):
            relative = relative[len(FILE_URL_PREFIX):]

        base = self.upload_dir.resolve()
        path = (base / relative).resolve()
        if base != path and base not in path.parents:
            raise ValidationError("Caminho de anexo inválido", details={"filePath": file_path})
        if not path.is_file():
            raise NotFoundError(resource="Anexo", details={"filePath": file_path})
        return path

    async def read_text(self, file_path: str) -> str:
        """
        Extrai o texto do anexo, limitado a max_chars caracteres.

        Args:
            file_path: URL ou caminho relativo do anexo.

        Returns:
            str: Texto extraído.
        """
        path = self.resolve_path(file_path)
        suffix = path.suffix.lower()

        if suffix == ".pdf":
            text = await asyncio.to_thread(self.extract_text_from_pdf, path)
        elif suffix in TEXT_EXTENSIONS:
            async with aiofiles.open(path, "r", encoding="utf-8", errors="ignore") as f:
                text = await f.read()
        else:
            raise ValidationError(
                f"Tipo de anexo não suportado: {suffix or 'sem extensão'}",
                details={"filePath": file_path},
            )

        text = text.strip()
        if not text:
            raise ValidationError("Anexo sem texto extraível", details={"filePath": file_path})
        return text[: self.max_chars]

    @staticmethod
    def extract_text_from_pdf(pdf_path: Path) -> str:
        """
        Extrai texto SIMPLES de um PDF apenas para embeddings.

        Usa PyMuPDF e recorre ao pdfplumber se nada for extraído.

        Args:
            pdf_path: Caminho para o arquivo PDF.

        Returns:
            str: Texto extraído do PDF (sem formatação).
        """
        text_parts = []
        with fitz.open(str(pdf_path)) as doc:
            for page in doc:
                text = page.get_text("text")
                if text.strip():
                    text_parts.append(text.strip())

        if not text_parts:
            logger.info(f"🔄 PyMuPDF não extraiu texto de {pdf_path.name}, tentando pdfplumber")
            with pdfplumber.open(str(pdf_path)) as pdf:
                for page in pdf.pages:
                    text = page.extract_text() or ""
                    if text.strip():
                        text_parts.append(text.strip())

        full_text = "\n\n".join(text_parts)
        full_text = re.sub(r"\n{3,}", "\n\n", full_text)
        full_text = re.sub(r" +", " ", full_text)
        return full_text.strip()
