from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

try:
    from assettrack.qr import asset_path
except ModuleNotFoundError:
    from qr import asset_path

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["asset_path"] = asset_path


def render(request: Request, template: str, context: Optional[Dict[str, Any]] = None, status_code: int = 200):
    return templates.TemplateResponse(request, template, context or {}, status_code=status_code)
