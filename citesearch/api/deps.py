from __future__ import annotations

from citesearch.agents.analysis import SourceAnalyzer
from citesearch.agents.sourcing import SourceFinder
from citesearch.config import settings
from citesearch.services.deadline import Deadline


def get_source_finder() -> SourceFinder:
    return SourceFinder()


def get_source_analyzer() -> SourceAnalyzer:
    return SourceAnalyzer()


def get_deadline() -> Deadline | None:
    """A fresh deadline per request, shared by everything that request calls."""
    return Deadline.after(settings.request_timeout_seconds)
