from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ArticleSource(BaseModel):
    """Publisher of an article."""
    name: str = "Unknown"

    class Config:
        frozen = True


class Article(BaseModel):
    """
    Normalized news article, common to every provider.
    Wire names (publishedAt, urlToImage, _id) are kept as aliases.
    """
    title: str = ""
    description: Optional[str] = None
    content: Optional[str] = None
    published_at: str = Field("", alias="publishedAt")
    source: ArticleSource = Field(default_factory=ArticleSource)
    url: str = ""
    url_to_image: Optional[str] = Field(None, alias="urlToImage")

    # Derived identifier, assigned after normalization
    id: Optional[str] = Field(None, alias="_id")

    class Config:
        populate_by_name = True
        frozen = True

    def with_id(self, article_id: str) -> "Article":
        """Return a copy tagged with the derived identifier."""
        return self.model_copy(update={"id": article_id})

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NewsResult(BaseModel):
    """Outcome of a listing request. Errors travel as data."""
    articles: List[Article] = Field(default_factory=list)
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"articles": [a.to_wire() for a in self.articles]}
        if self.error is not None:
            payload["error"] = self.error
        return payload
