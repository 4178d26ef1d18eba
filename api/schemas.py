"""
Pydantic Schemas for API Request/Response Models

This module defines the data models used for API communication between
the capture/search frontend and the backend.

Field names follow the JSON contract the browser client already speaks
(camelCase: uploadUrl, personId, imageUrl).
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================
# Upload Schemas
# ============================================================

class PresignedUrlResponse(BaseModel):
    """Write grant for a single probe image."""
    uploadUrl: str = Field(..., description="Pre-signed PUT URL, valid for a short window")
    key: str = Field(..., description="Object key the URL writes to (32 hex chars + extension)")


# ============================================================
# Search Schemas
# ============================================================

class SearchFaceRequest(BaseModel):
    """Search request for a previously uploaded probe image."""
    # Optional so that a missing key is reported as 400 by the handler
    key: Optional[str] = Field(None, description="Object key returned by /api/get-presigned-url")


class MatchResult(BaseModel):
    """A single matched face."""
    personId: str = Field(..., description="External identifier the face was indexed with")
    similarity: str = Field(..., description="Similarity 0-100 with two decimals, e.g. '97.50'")
    imageUrl: str = Field(..., description="Pre-signed GET URL of the matched image")


class SearchFaceResponse(BaseModel):
    """Successful search with at least one match, in service ranking order."""
    message: str = Field(default="Matches found!")
    matches: List[MatchResult] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Body of every error response."""
    message: str


# ============================================================
# System Schemas
# ============================================================

class HealthResponse(BaseModel):
    """Response from health check endpoint."""
    status: str = Field(..., description="'healthy'")
    bucket_name: str = Field(..., description="Configured S3 bucket")
    collection_id: str = Field(..., description="Configured face collection")
    region: Optional[str] = Field(None, description="AWS region")
