from datetime import datetime, timezone

import pytest

from studio.schemas.selection import CustomerInfo, CustomerSelection
from studio.schemas.tenant import TenantBranding
from studio.services.estimate_documents import (
    document_key,
    download_filename,
    generate_estimate_document,
    read_estimate_document,
)
from studio.services.estimate_service import submit_estimate
from studio.services.pricing_config_service import save_pricing_config
from studio.services.storage import LocalStorage

BRANDING = TenantBranding(tenant_id="acme", company_name="Acme Interiors")


class FailingWriter:
    def __call__(self, html, branding):
        raise OSError("renderer crashed")


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path), base_url="http://files.test")


@pytest.fixture
def estimate(db, kitchen_config, kitchen_selection):
    save_pricing_config(db, "acme", kitchen_config)
    return submit_estimate(
        db,
        "acme",
        CustomerInfo(name="Ravi Kumar"),
        CustomerSelection.model_validate(kitchen_selection),
    )


def test_generate_stores_pdf_and_points_record_at_it(db, estimate, storage, stub_pdf_writer):
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    updated = generate_estimate_document(
        db, "acme", estimate.id,
        storage=storage, branding=BRANDING, pdf_writer=stub_pdf_writer, now=now,
    )

    assert updated.pdf_key == document_key(estimate.id)
    assert updated.pdf_url == f"http://files.test/files/acme/estimates/{estimate.id}.pdf"
    assert updated.generated_at is not None
    assert updated.status == "pending"
    assert storage.read_bytes("acme", updated.pdf_key) == b"%PDF-1.7 stub 1"


def test_regeneration_overwrites_the_single_artifact(db, estimate, storage, stub_pdf_writer, tmp_path):
    first = generate_estimate_document(
        db, "acme", estimate.id, storage=storage, branding=BRANDING, pdf_writer=stub_pdf_writer
    )
    first_key, first_url = first.pdf_key, first.pdf_url

    second = generate_estimate_document(
        db, "acme", estimate.id, storage=storage, branding=BRANDING, pdf_writer=stub_pdf_writer
    )

    assert (second.pdf_key, second.pdf_url) == (first_key, first_url)
    assert [p.name for p in (tmp_path / "acme" / "estimates").iterdir()] == [f"{estimate.id}.pdf"]
    assert read_estimate_document(db, "acme", estimate.id, storage=storage) == b"%PDF-1.7 stub 2"


def test_generation_keeps_approval_status(db, estimate, storage, stub_pdf_writer):
    estimate.status = "approved"
    db.commit()

    updated = generate_estimate_document(
        db, "acme", estimate.id, storage=storage, branding=BRANDING, pdf_writer=stub_pdf_writer
    )
    assert updated.status == "approved"


def test_failed_render_leaves_record_untouched(db, estimate, storage):
    with pytest.raises(OSError):
        generate_estimate_document(
            db, "acme", estimate.id, storage=storage, branding=BRANDING, pdf_writer=FailingWriter()
        )

    db.refresh(estimate)
    assert estimate.pdf_url is None
    assert estimate.generated_at is None
    assert not storage.exists("acme", document_key(estimate.id))


def test_read_before_generation_is_missing(db, estimate, storage):
    with pytest.raises(FileNotFoundError):
        read_estimate_document(db, "acme", estimate.id, storage=storage)


def test_download_filename(estimate):
    day = datetime(2024, 3, 9, tzinfo=timezone.utc)
    assert download_filename(estimate, today=day) == "estimate_ravi_kumar_2024-03-09.pdf"
