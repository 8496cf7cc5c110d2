from __future__ import annotations

from pydantic import BaseModel, StrictStr

from citesearch.models.research import Source


# --- Requests ---


class SourceModel(BaseModel):
    description: StrictStr
    link: StrictStr

    def to_source(self) -> Source:
        return Source(description=self.description, link=self.link)


class SearchRequest(BaseModel):
    query: StrictStr | None = None


class AnalyzeRequest(BaseModel):
    query: StrictStr | None = None
    sources: list[SourceModel] | None = None


# --- Responses ---


class SearchResponse(BaseModel):
    title: str
    sources: list[SourceModel]
    message: str | None = None


class AnalyzeResponse(BaseModel):
    answer: str
    sources: list[SourceModel]


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    service: str
