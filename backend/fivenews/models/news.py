# fivenews/models/news.py
from typing import List, Optional
from pydantic import BaseModel, Field


class ArticleSource(BaseModel):
    id: Optional[str] = None
    name: str


class NewsArticle(BaseModel):
    id: str
    title: str
    description: str = ""
    url: str
    urlToImage: Optional[str] = None
    publishedAt: str
    source: ArticleSource
    content: str = ""
    cartoonUrl: Optional[str] = None


class NewsResponse(BaseModel):
    articles: List[NewsArticle] = Field(default_factory=list)
    totalResults: int = 0
    hasMore: bool = False
    source: str
