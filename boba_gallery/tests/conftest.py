import pytest

from boba_gallery.config.settings import get_settings
from boba_gallery.models import Submission


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Rebuild settings for every test so env overrides never leak between tests."""
    monkeypatch.delenv("API_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_record(record_id: str, **fields):
    """Raw submission record as returned by the submissions API."""
    return {"id": record_id, "createdTime": "2024-11-02T10:00:00.000Z", "fields": fields}


@pytest.fixture
def sample_records():
    return [
        make_record(
            "rec001",
            **{
                "Title": "Bubble Tea Tracker",
                "Description": "Tracks every boba I drink.",
                "Status": "Approved",
                "Event Code": "BOBA24",
                "Code URL": "https://github.com/example/bubble-tea",
                "Playable URL": "https://example.github.io/bubble-tea",
                "Screenshot": [{"url": "https://dl.airtable.com/shot1.png"}],
            },
        ),
        make_record(
            "rec002",
            **{
                "Title": "Pearl Portfolio",
                "Status": "Pending",
                "Code URL": "https://github.com/example/pearl",
                "Playable URL": "https://example.github.io/pearl",
                "Screenshot": [{"url": "https://dl.airtable.com/shot2.png"}],
            },
        ),
        make_record(
            "rec003",
            **{
                "Title": "No Screenshot Site",
                "Status": "Rejected",
                "Code URL": "https://github.com/example/none",
                "Playable URL": "https://example.github.io/none",
            },
        ),
    ]


@pytest.fixture
def sample_submissions(sample_records):
    return [Submission.model_validate(record) for record in sample_records]
