import os

# Keep the suite offline and off the on-disk database regardless of the local .env
os.environ["OPENAI_API_KEYS"] = ""
os.environ["GROQ_API_KEYS"] = ""
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from services.storage_service import ChangeFeed, MemoryKeyValueStore, UserStore


@pytest.fixture
def store():
    return UserStore(MemoryKeyValueStore(), "user-1", ChangeFeed())
