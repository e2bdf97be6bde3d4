from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from deltanotes.api.errors import unwrap
from deltanotes.api.v1.schemas.editor import DeltaContent, DeltaRead, PlainTextInput, PlainTextRead
from deltanotes.dependencies import get_document_converter

if TYPE_CHECKING:
    from deltanotes.core.services.document_converter import DocumentConverter

router = APIRouter()


@router.post("/plain-text", response_model=PlainTextRead)
async def extract_plain_text(
    payload: DeltaContent,
    converter: DocumentConverter = Depends(get_document_converter),
):
    """Flatten delta content to its plain text."""
    document = unwrap(converter.from_delta(payload.content))
    return PlainTextRead(
        plain_text=converter.to_plain_text(document),
        is_empty=converter.is_empty(document),
    )


@router.post("/from-plain-text", response_model=DeltaRead)
async def delta_from_plain_text(
    payload: PlainTextInput,
    converter: DocumentConverter = Depends(get_document_converter),
):
    document = converter.from_plain_text(payload.text)
    return DeltaRead(content=converter.to_content(document))
