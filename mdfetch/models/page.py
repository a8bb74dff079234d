from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    published_time: Optional[str] = None
    modified_time: Optional[str] = None
    site_name: Optional[str] = None
    keywords: Optional[List[str]] = None
    image: Optional[str] = None
    lang: Optional[str] = None


class ExtractedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    metadata: PageMetadata
