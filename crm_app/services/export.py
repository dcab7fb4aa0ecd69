from __future__ import annotations

import csv
import io
from typing import Iterable, List, Sequence

from crm_app.schemas.comment import Comment
from crm_app.schemas.lead import Lead
from crm_app.schemas.tag import Tag
from crm_app.services.tags import resolve_lead_tags

LEAD_COLUMNS = ["First Name", "Last Name", "Company", "Email", "Phone", "City", "Status", "Tags"]
COMMENT_COLUMNS = ["Date", "Comment", "Added By", "Role"]


def _tag_names(lead: Lead, tags: Sequence[Tag]) -> str:
    return "; ".join(tag.name for tag in resolve_lead_tags(lead, tags))


def _write(header: Sequence[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def leads_to_csv(leads: Iterable[Lead], tags: Sequence[Tag] = ()) -> str:
    """Render the lead table; tag references are written by display name."""

    return _write(
        LEAD_COLUMNS,
        (
            [
                lead.text("first_name"),
                lead.text("last_name"),
                lead.text("company"),
                lead.text("email"),
                lead.text("phone"),
                lead.text("city"),
                lead.text("lead_status"),
                _tag_names(lead, tags),
            ]
            for lead in leads
        ),
    )


def comments_to_csv(comments: Iterable[Comment]) -> str:
    return _write(
        COMMENT_COLUMNS,
        (
            [
                comment.created_at.strftime("%d-%b-%y %H:%M") if comment.created_at else "",
                comment.text,
                comment.added_by or "",
                comment.role or "",
            ]
            for comment in comments
        ),
    )
