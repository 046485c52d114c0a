from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from blogspace.constants import NO_BIO
from blogspace.services.rendering import blog_renderer, initial, time_ago
from blogspace.utils.assets import STATIC_ROOT, asset_url

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Shared Jinja2 templates instance
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["current_year"] = datetime.now(UTC).year
templates.env.globals["asset_url"] = asset_url
templates.env.globals["no_bio"] = NO_BIO
templates.env.filters["time_ago"] = time_ago
templates.env.filters["initial"] = initial
templates.env.filters["markdown"] = blog_renderer.render_markdown
templates.env.filters["reading_time"] = blog_renderer.calculate_reading_time


class CachedStaticFiles(StaticFiles):
    def __init__(self, *args, cache_control: str | None = None, **kwargs):
        kwargs.setdefault("directory", str(STATIC_ROOT))
        super().__init__(*args, **kwargs)
        self.cache_control = cache_control or "public, max-age=31536000, immutable"

    async def get_response(self, path: str, scope):
        response = await super().get_response(path, scope)
        if self.cache_control and response.status_code == 200:
            response.headers.setdefault("Cache-Control", self.cache_control)
        return response
