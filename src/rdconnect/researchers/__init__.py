from .directory import ResearcherDirectory  # noqa: F401
