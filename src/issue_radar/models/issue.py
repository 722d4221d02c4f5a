from pydantic import BaseModel, Field
from datetime import datetime

class Issue(BaseModel):
    """An open issue fetched from a GitHub repository."""

    id: int | str = Field(..., description="GitHub databaseId, unique per repository")
    title: str
    body: str | None = None
    html_url: str
    created_at: datetime
