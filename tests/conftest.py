import os
import tempfile

# test database + file storage live in a throwaway directory (set before studio is imported)
_TMP = tempfile.mkdtemp(prefix="studio-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP}/test.db")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(_TMP, "files"))
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest

from studio.db import Base, SessionLocal, engine


@pytest.fixture(scope="session", autouse=True)
def _create_test_db():
    # models must be imported, otherwise Base has no tables to create
    from studio import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def kitchen_config():
    """Rate card with a single Kitchen room (used by the end-to-end scenario)."""
    return {
        "roomPricing": [
            {"id": "kitchen", "name": "Kitchen", "rate": 250000, "enabled": True},
        ],
        "materialGrades": [
            {"id": "hdhmr", "name": "HDHMR", "multiplier": 1.5, "enabled": True},
        ],
        "finishTypes": [
            {"id": "pu", "name": "PU Paint", "multiplier": 1.8, "enabled": True},
        ],
    }


@pytest.fixture
def kitchen_selection():
    return {
        "carpetArea": 900,
        "segment": "Residential",
        "configuration": {
            "rooms": ["kitchen"],
            "materialGrade": "hdhmr",
            "finishType": "pu",
        },
    }


class StubPdfWriter:
    """Records what it was asked to render; returns fake PDF bytes."""

    def __init__(self):
        self.calls = []

    def __call__(self, html, branding):
        self.calls.append((html, branding))
        return b"%PDF-1.7 stub " + str(len(self.calls)).encode()


@pytest.fixture
def stub_pdf_writer():
    return StubPdfWriter()
