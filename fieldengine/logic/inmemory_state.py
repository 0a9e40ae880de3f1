"""In-memory holder for live documents served over HTTP.

Documents are process-local: their fields, dependency registrations and
running tasks live only as long as the process. Answers are persisted by the
configured persistence adapter.
"""

from __future__ import annotations

from typing import Dict

from fieldengine.logic.document import Document

# Document store: document_id -> Document
DOCUMENTS_STORE: Dict[str, Document] = {}

__all__ = ["DOCUMENTS_STORE"]
