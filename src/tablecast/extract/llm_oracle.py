"""LLM-backed extraction oracle.

The document is rendered to text (see ``tablecast.extract.documents``) and sent
to the configured LiteLLM model with one of two prompts:

  canonical  rows follow the household schema, field list embedded in prompt
  generic    rows keep the document's own column headings

The model must answer with a JSON array of objects; ``parse_records`` enforces
that contract.
"""

from __future__ import annotations

import logging

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import ExtractionServiceError, NoDataExtractedError
from tablecast.extract import llm_client
from tablecast.extract.base import ExtractionOracle, RawRecord, parse_records
from tablecast.extract.documents import render_text
from tablecast.schema.household import FIELDS

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    "identity": "string",
    "text": "string",
    "integer": "integer",
    "number": "number",
    "boolean": "boolean",
}

_SYSTEM_PROMPT = (
    "You extract tabular data from documents. "
    "Reply with a JSON array of objects only. No prose, no Markdown."
)

_CANONICAL_PROMPT = """\
Parse the following document text from a multi-page household survey. The data \
for each respondent may be split across several tables on different pages; rows \
correspond to each other in order. Merge the data for each respondent into a \
single JSON object. The output must be a JSON array of these objects.

Clean the data: fix obvious typos and remove line breaks inside fields.
Convert values to their correct types: numbers for numerical fields, booleans \
for yes/no fields (Yes/1 = true, No/2 = false). Keep category values such as \
"3BHK or more" as written. Use null when a value is not present.

Each object has these fields:
{field_list}

Document ({file_name}):
{document_text}
"""

_GENERIC_PROMPT = """\
Extract every data table in the following document into a JSON array with one \
object per data row. Use the document's own column headings as keys (shortened \
to a few words, camelCase). Rows split across pages belong together in order. \
Convert numeric cells to numbers and yes/no cells to booleans. Use null for \
empty cells. Do not invent rows or columns.

Document ({file_name}):
{document_text}
"""


def _field_list() -> str:
    return "\n".join(
        f"- {f.name} ({_JSON_TYPES[f.kind]}): {f.description}" for f in FIELDS
    )


class LLMExtractionOracle(ExtractionOracle):
    """Extract rows with a LiteLLM-routed model.

    Args:
        model:             LiteLLM model string (provider/model).
        max_tokens:        Maximum output tokens per call.
        temperature:       Sampling temperature.
        num_retries:       LiteLLM retries on transient errors.
        timeout:           Per-request timeout in seconds.
        max_document_chars: Document text beyond this length is truncated.
    """

    def __init__(
        self,
        model: str = "openai/gpt-4o-mini",
        *,
        max_tokens: int = 8192,
        temperature: float = 0.0,
        num_retries: int = 3,
        timeout: float | None = 120.0,
        max_document_chars: int = 60_000,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.num_retries = num_retries
        self.timeout = timeout
        self.max_document_chars = max_document_chars

    async def extract_canonical(self, file: SourceFile) -> list[RawRecord]:
        prompt = _CANONICAL_PROMPT.format(
            field_list=_field_list(),
            file_name=file.name,
            document_text=self._document_text(file),
        )
        return await self._extract(prompt, "canonical")

    async def extract_generic(self, file: SourceFile) -> list[RawRecord]:
        prompt = _GENERIC_PROMPT.format(
            file_name=file.name,
            document_text=self._document_text(file),
        )
        return await self._extract(prompt, "generic")

    def _document_text(self, file: SourceFile) -> str:
        text = render_text(file, max_chars=self.max_document_chars)
        if not text.strip():
            raise NoDataExtractedError(file.name)
        return text

    async def _extract(self, prompt: str, variant: str) -> list[RawRecord]:
        llm_client.validate_api_key(self.model)
        logger.debug("Calling %s for %s extraction", self.model, variant)
        try:
            content = await llm_client.acomplete(
                self.model,
                [
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                num_retries=self.num_retries,
                timeout=self.timeout,
            )
        except Exception as exc:
            raise ExtractionServiceError(self.model, exc) from exc
        records = parse_records(content)
        logger.info("%s extraction returned %d records", variant.capitalize(), len(records))
        return records
