"""
CSV template downloads.
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from venturematch.import_data.templates import TEMPLATES, render_template, template_names

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("")
def list_templates():
    """Names of the downloadable templates."""
    return {"templates": template_names()}


@router.get("/{name}")
def download_template(name: str):
    """Download a CSV template with headers and sample rows."""
    try:
        content = render_template(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown template: {name}")

    filename = TEMPLATES[name]["filename"]
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
