import os
import sys
from datetime import datetime

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from crm_app.schemas.comment import Comment
from crm_app.schemas.lead import Lead, TagSource
from crm_app.schemas.tag import Tag
from crm_app.services.export import comments_to_csv, leads_to_csv


def test_leads_csv_quotes_fields_and_joins_tags() -> None:
    lead = Lead.model_validate(
        {
            "firstName": "Meera",
            "company": "Patel, Sons & Co",
            "leadStatus": "Open",
            "tags": ["Hot", {"source": "whatsapp", "id": "wa-1"}],
        }
    )

    rows = leads_to_csv([lead]).splitlines()

    assert rows[0] == "First Name,Last Name,Company,Email,Phone,City,Status,Tags"
    assert rows[1] == 'Meera,,"Patel, Sons & Co",,,,Open,Hot; wa-1'


def test_leads_csv_resolves_tag_references_to_names() -> None:
    tags = [
        Tag(id="TAG-00001", name="Follow Up"),
        Tag(id="wa-1", name="Warm", source=TagSource.whatsapp),
    ]
    lead = Lead.model_validate(
        {
            "firstName": "Ravi",
            "tags": [{"source": "crm", "id": "TAG-00001"}, {"source": "whatsapp", "id": "wa-1"}, "Hot"],
        }
    )

    rows = leads_to_csv([lead], tags).splitlines()

    assert rows[1] == "Ravi,,,,,,,Follow Up; Warm; Hot"


def test_empty_export_has_only_headers() -> None:
    assert leads_to_csv([]) == "First Name,Last Name,Company,Email,Phone,City,Status,Tags\n"


def test_comments_csv_formats_dates() -> None:
    comment = Comment(
        id="c1",
        text="Sent pricing",
        created_at=datetime(2025, 11, 3, 17, 17),
        added_by="testceo",
        role="admin",
    )

    rows = comments_to_csv([comment, Comment(id="c2", text="no date")]).splitlines()

    assert rows[0] == "Date,Comment,Added By,Role"
    assert rows[1] == "03-Nov-25 17:17,Sent pricing,testceo,admin"
    assert rows[2] == ",no date,,"
