"""
MisIntel Advanced-Check Workflow State
Defines the state schema for the LangGraph workflow.
"""

from typing import TypedDict, Optional
from models.schemas import (
    AnalysisRequest, AnalysisResult, AuthorInfo, VerificationEvidence
)


class CheckState(TypedDict, total=False):
    """State for one advanced-check request."""

    # Input
    request: AnalysisRequest
    client_id: str
    url: Optional[str]  # Stripped URL for URL requests

    # Cache
    cache_hit: bool

    # Content acquisition
    content: str  # Text handed to the evidence clients and the model
    extracted_text: Optional[str]  # OCR output for image requests

    # Evidence
    evidence: VerificationEvidence
    author: Optional[AuthorInfo]

    # Output
    result: Optional[AnalysisResult]
    cacheable: bool  # False for the partial-failure response
