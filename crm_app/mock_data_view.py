"""Routes for browsing mock data stored by the in-memory repositories."""
from __future__ import annotations

import html
import json
from typing import Any, Dict, Iterable, List, Mapping

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from crm_app.services.mock_store import get_mock_store

router = APIRouter()


def _stringify(value: Any) -> str:
    """Return a JSON-friendly string representation for table cells."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    return json.dumps(value, default=str)


def _build_table(title: str, rows: Iterable[Mapping[str, Any]]) -> str:
    row_list: List[Dict[str, Any]] = [dict(row) for row in rows]
    parts = [f"<section><h2>{html.escape(title)}</h2>"]
    if not row_list:
        parts.append("<p>No records found.</p></section>")
        return "".join(parts)

    columns: List[str] = []
    for row in row_list:
        for key in row:
            if key not in columns:
                columns.append(key)

    header = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
    body = "".join(
        "<tr>"
        + "".join(f"<td>{html.escape(_stringify(row.get(column)))}</td>" for column in columns)
        + "</tr>"
        for row in row_list
    )
    parts.append(f"<table><thead><tr>{header}</tr></thead><tbody>{body}</tbody></table>")
    parts.append("</section>")
    return "".join(parts)


@router.get("/mock-data", response_class=HTMLResponse)
async def view_mock_data() -> HTMLResponse:
    """Render the shared in-memory CRM store as HTML tables."""
    store = get_mock_store()

    sections = [
        _build_table("Leads", await store.leads.list()),
        _build_table("Salespersons", await store.salespersons.list()),
        _build_table("Tags", await store.tags.list()),
        _build_table("Comments", store.comments._comments.values()),
    ]
    for kind, repository in store.reference.items():
        sections.append(_build_table(f"Manage items: {kind.value}", await repository.list()))

    html_content = f"""
    <html>
        <head>
            <title>Mock CRM Data</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; }}
                h1 {{ text-align: center; }}
                section {{ margin-bottom: 2rem; }}
                table {{ border-collapse: collapse; width: 100%; }}
                th, td {{ border: 1px solid #ccc; padding: 0.5rem; text-align: left; }}
                th {{ background-color: #f0f0f0; }}
                tbody tr:nth-child(even) {{ background-color: #fafafa; }}
            </style>
        </head>
        <body>
            <h1>Mock CRM Data</h1>
            {"".join(sections)}
        </body>
    </html>
    """
    return HTMLResponse(content=html_content)


@router.delete("/mock-data/{collection}/{record_id}")
async def delete_mock_record(collection: str, record_id: str) -> Dict[str, str]:
    """Remove a record from one of the mock data repositories."""

    store = get_mock_store()
    collection_map = {
        "lead": ("leads", store.leads.delete),
        "leads": ("leads", store.leads.delete),
        "salesperson": ("salespersons", store.salespersons.delete),
        "salespersons": ("salespersons", store.salespersons.delete),
        "comment": ("comments", store.comments.delete),
        "comments": ("comments", store.comments.delete),
    }

    mapping = collection_map.get(collection.strip().lower())
    if not mapping:
        raise HTTPException(status_code=404, detail="Unsupported mock data collection")

    canonical_name, delete_fn = mapping
    if not await delete_fn(record_id):
        raise HTTPException(status_code=404, detail="Record not found")
    return {"status": "deleted", "collection": canonical_name, "record_id": record_id}
