from pydantic import BaseModel, ConfigDict, Field


class URLCreate(BaseModel):
    """Body of POST /api/urls.

    Both fields are plain strings; their format is checked by the service
    so failures come back as {"error": ...} rather than a 422.
    """
    id: str = Field(..., description="Short id chosen by the client")
    url: str = Field(..., description="The original URL to be shortened")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": "abc123", "url": "https://example.com/page"}
        }
    )


class URLCreated(BaseModel):
    success: bool = True


class URLResolved(BaseModel):
    original_url: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    database: bool
