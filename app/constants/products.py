from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class CatalogEntry:
    key: str
    path: str          # object key in R2, relative path on local disk
    filename: str      # Content-Disposition filename
    title: str
    content_type: str = "application/pdf"


# Paid products. This set is closed: anything else is rejected before
# a storage backend is touched.
PRODUCTS: Mapping[str, CatalogEntry] = MappingProxyType({
    "book": CatalogEntry(
        key="book",
        path="books/the-path-to-purpose.pdf",
        filename="The-Path-to-Purpose.pdf",
        title="The Path to Purpose",
    ),
    "bundle": CatalogEntry(
        key="bundle",
        path="books/the-path-to-purpose.pdf",
        filename="The-Path-to-Purpose-Bundle.pdf",
        title="The Path to Purpose (Bundle)",
    ),
})

# Free research papers, served without a signature
RESEARCH_PAPERS: Mapping[str, CatalogEntry] = MappingProxyType({
    "ai-job-security": CatalogEntry(
        key="ai-job-security",
        path="books/ai-job-security-human-condition.pdf",
        filename="AI-Job-Security-and-the-Human-Condition.pdf",
        title="AI, Job Security, and the Human Condition",
    ),
})

# Checkout book types -> downloadable product key (hardcopy ships, no download)
BOOK_TYPE_PRODUCTS = MappingProxyType({
    "ebook": "book",
    "bundle": "bundle",
    "hardcopy": None,
})

BOOK_TYPES = tuple(BOOK_TYPE_PRODUCTS)


def get_product(key: Optional[str]) -> Optional[CatalogEntry]:
    if not key:
        return None
    return PRODUCTS.get(key)


def get_research_paper(paper_id: Optional[str]) -> Optional[CatalogEntry]:
    if not paper_id:
        return None
    return RESEARCH_PAPERS.get(paper_id)


def download_display_name(product: str) -> str:
    """Human label for a `download.product` value, used by analytics."""
    if product in PRODUCTS:
        # book and bundle are the same title for reporting
        return PRODUCTS["book"].title
    if product.startswith("research:"):
        paper_id = product[len("research:"):]
        paper = RESEARCH_PAPERS.get(paper_id)
        return paper.title if paper else f"Research Paper: {paper_id}"
    return product
