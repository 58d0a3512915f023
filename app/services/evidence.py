"""Encode user-selected files into transportable evidence payloads."""

from __future__ import annotations

import base64
import mimetypes
from typing import Optional

from fastapi import UploadFile

from app.schemas.analysis import Evidence
from app.services.errors import EvidenceTooLargeError


class EvidenceEncoder:
    """Turn raw file bytes into an immutable :class:`Evidence` value."""

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes

    def encode(
        self,
        *,
        filename: str,
        content: bytes,
        mime_type: Optional[str] = None,
        caption: Optional[str] = None,
    ) -> Evidence:
        if not content:
            raise ValueError(f"Evidence file '{filename}' is empty.")
        if len(content) > self._max_bytes:
            raise EvidenceTooLargeError(
                f"Evidence file '{filename}' is {len(content)} bytes; "
                f"the limit is {self._max_bytes} bytes."
            )

        # Browsers report unknown types as octet-stream; the extension is a better hint.
        resolved_type = mime_type
        if not resolved_type or resolved_type == "application/octet-stream":
            resolved_type = mimetypes.guess_type(filename)[0] or resolved_type
        if not resolved_type:
            raise ValueError(f"Could not determine a MIME type for '{filename}'.")

        return Evidence(
            filename=filename,
            mime_type=resolved_type,
            data=base64.b64encode(content).decode("ascii"),
            caption=caption or None,
        )

    async def encode_upload(
        self, upload: UploadFile, caption: Optional[str] = None
    ) -> Evidence:
        """Read a multipart upload and encode it."""
        content = await upload.read()
        return self.encode(
            filename=upload.filename or "evidence",
            content=content,
            mime_type=upload.content_type,
            caption=caption,
        )

    @staticmethod
    def with_caption(evidence: Evidence, caption: Optional[str]) -> Evidence:
        """Return a copy of the draft evidence carrying a new caption."""
        return evidence.model_copy(update={"caption": caption or None})


__all__ = ["EvidenceEncoder"]
