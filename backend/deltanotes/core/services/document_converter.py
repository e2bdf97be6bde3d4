from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from deltanotes.core.failures import ValidationFailure
from deltanotes.core.models.document import DeltaOperation, Document
from deltanotes.core.result import Failure, Result, Success
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

INVALID_CONTENT_MESSAGE = "Content is not a valid delta document"


class DocumentConverter:
    """Conversions between ``Document``, delta JSON and plain text.

    Parsing never returns a partially built document: malformed input yields a
    ``ValidationFailure`` on the ``content`` field, which callers must read as
    "content unrecoverable" rather than "content empty".
    """

    def to_json(self, document: Document) -> str:
        return json.dumps(document.to_delta(), ensure_ascii=False)

    def to_content(self, document: Document) -> dict[str, Any]:
        """Return the ``{"ops": [...]}`` shape stored in ``notes.content``."""
        return {"ops": document.to_delta()}

    def from_json(self, raw: str) -> Result[Document]:
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as err:
            logger.debug("Rejected delta JSON: %s", err)
            return Failure(ValidationFailure(message=INVALID_CONTENT_MESSAGE, field="content"))
        return self.from_delta(decoded)

    def from_delta(self, content: Any) -> Result[Document]:
        """Build a document from decoded delta JSON (op list or ``{"ops": [...]}``)."""
        ops = content
        if isinstance(content, dict):
            if set(content) != {"ops"}:
                return Failure(ValidationFailure(message=INVALID_CONTENT_MESSAGE, field="content"))
            ops = content["ops"]
        if not isinstance(ops, list):
            return Failure(ValidationFailure(message=INVALID_CONTENT_MESSAGE, field="content"))
        try:
            parsed = [DeltaOperation.model_validate(op) for op in ops]
        except ValidationError as err:
            logger.debug("Rejected delta operations: %s", err.errors(include_url=False))
            return Failure(ValidationFailure(message=INVALID_CONTENT_MESSAGE, field="content"))
        return Success(Document(parsed))

    def to_plain_text(self, document: Document) -> str:
        return document.to_plain_text()

    def from_plain_text(self, text: str) -> Document:
        return Document([DeltaOperation(insert=text)])

    def is_empty(self, document: Document) -> bool:
        return self.to_plain_text(document).strip() == ""

    def extract_plain_text(self, content: Any) -> Result[str]:
        return self.from_delta(content).map(self.to_plain_text)
