"""Product input supplied by the caller and the prompt-ready projection of it."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Maximum characters kept per extracted document.
MAX_DOCUMENT_CHARS = 3000
TRUNCATION_MARKER = "...[truncated]"


def truncate_document_text(text: str, max_characters: int = MAX_DOCUMENT_CHARS) -> str:
    """Cap extracted text, appending a marker when content was dropped."""
    if not text:
        return ""
    if len(text) <= max_characters:
        return text.strip()
    return f"{text[:max_characters].strip()}{TRUNCATION_MARKER}"


class DocumentText(BaseModel):
    """Text extracted from one uploaded document."""

    model_config = ConfigDict(frozen=True)

    filename: str
    text: str = ""

    @field_validator("text")
    @classmethod
    def cap_length(cls, v: str) -> str:
        if v.endswith(TRUNCATION_MARKER) and len(v) <= MAX_DOCUMENT_CHARS + len(TRUNCATION_MARKER):
            return v
        return truncate_document_text(v)


class ProductInput(BaseModel):
    """Immutable description of the product under assessment.

    Presence of ``name`` and ``description`` is enforced by the orchestrator so
    that an empty value surfaces as ``InputValidationError`` before any LLM call.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""
    known_alternatives: str = ""
    additional_info: str = ""
    documents: list[DocumentText] = Field(default_factory=list)

    @field_validator("name", "description", "known_alternatives", "additional_info", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()


@dataclass(frozen=True)
class BaseProductInfo:
    """Shared projection of the product used by every prompt."""

    name: str
    description: str
    alternatives: str
    additional_info: str
    docs: str

    @classmethod
    def from_product(cls, product: ProductInput, excerpt_chars: int = 500) -> BaseProductInfo:
        if product.documents:
            docs = " | ".join(
                f"{doc.filename}: {doc.text[:excerpt_chars]}..." for doc in product.documents
            )
        else:
            docs = "None"
        return cls(
            name=product.name,
            description=product.description,
            alternatives=product.known_alternatives or "None specified",
            additional_info=product.additional_info or "None provided",
            docs=docs,
        )

    def snapshot(self) -> dict[str, str]:
        return {
            "name": self.name,
            "description": self.description,
            "knownAlternatives": self.alternatives,
            "additionalInfo": self.additional_info,
            "extractedDocuments": self.docs,
        }
