"""Shared pytest fixtures for trifetch tests."""

import mongomock
import pytest

from trifetch.core.config import Settings

# Release years -> number of movies; 11 distinct numeric years
MOVIE_YEAR_COUNTS = {
    1995: 3,
    1996: 12,
    1997: 2,
    1998: 5,
    1999: 1,
    2000: 4,
    2001: 2,
    2002: 6,
    2003: 1,
    2004: 2,
    2005: 1,
}


def make_movies() -> list[dict]:
    """Movies collection with numeric years plus malformed year values."""
    movies = []
    for year, count in MOVIE_YEAR_COUNTS.items():
        for n in range(count):
            movies.append({"title": f"Movie {year}-{n}", "year": year, "cast": "", "plot": ""})
    # sample_mflix has years like "1998è" stored as strings
    movies.append({"title": "Bad Year", "year": "1998è", "cast": "", "plot": ""})
    movies.append({"title": "No Year", "cast": "", "plot": ""})
    return movies


@pytest.fixture
def settings() -> Settings:
    """Settings with dummy secrets."""
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        supabase_url="https://example.supabase.co/rest/v1",
        supabase_key="test-key",
        fetch_timeout_s=5,
    )


@pytest.fixture
def mongo_client():
    """In-memory MongoDB client seeded with sample_mflix.movies."""
    client = mongomock.MongoClient()
    client["sample_mflix"]["movies"].insert_many(make_movies())
    yield client
    client.close()


@pytest.fixture
def movie_year_counts() -> dict[int, int]:
    """Expected per-year movie counts of the seeded collection."""
    return dict(MOVIE_YEAR_COUNTS)
