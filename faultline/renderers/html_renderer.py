"""
HTML renderer.

Pages are Jinja2 templates rendered with autoescaping always on, so
exception classes, messages, paths and source lines never reach the
page unescaped.

Color Palette:
  - Dark BG:        #001E2B
  - Dark Card:      #112733
  - Dark Border:    #1C3A40
  - Text:           #E8EDEB
  - Text Muted:     #889397
  - Primary Green:  #00ED64
  - Error Red:      #CF4A22
  - Warning Yellow: #FFC010
  - Info Blue:      #016BF8
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from jinja2 import Environment, select_autoescape

from ..debug.core import Debug
from ..faults.flatten import FlattenException
from .base import ErrorRenderer, frame_function


# ============================================================================
# CSS Styles
# ============================================================================

_PRODUCTION_CSS = r"""
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 0; padding: 50px; background: #F9FBFA; }
.container { max-width: 600px; margin: 0 auto; background: #FFFFFF; padding: 40px; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,30,43,0.1); }
h1 { color: #CF4A22; margin: 0 0 20px; font-size: 28px; }
p { color: #5C6C75; line-height: 1.6; margin: 0 0 20px; }
.error-code { font-size: 18px; font-weight: 600; color: #001E2B; }
"""

_DEBUG_CSS = r"""
:root {
  --fl-bg: #001E2B;
  --fl-card: #112733;
  --fl-border: #1C3A40;
  --fl-text: #E8EDEB;
  --fl-muted: #889397;
  --fl-green: #00ED64;
  --fl-error: #CF4A22;
  --fl-warning: #FFC010;
  --fl-info: #016BF8;
}
body { font-family: 'SF Mono', 'Fira Code', 'JetBrains Mono', 'Consolas', 'Monaco', monospace; margin: 0; padding: 20px; background: var(--fl-bg); color: var(--fl-text); font-size: 13px; line-height: 1.5; }
.container { max-width: 1200px; margin: 0 auto; }
.header { background: var(--fl-card); padding: 20px; border-radius: 6px; margin-bottom: 20px; border-left: 4px solid var(--fl-error); }
.exception-class { color: var(--fl-error); font-size: 18px; font-weight: bold; margin-bottom: 10px; }
.exception-message { color: #FFFFFF; font-size: 16px; margin-bottom: 15px; word-wrap: break-word; }
.exception-location { color: var(--fl-info); }
.memory-info { color: var(--fl-muted); margin-top: 10px; }
.section { background: var(--fl-card); padding: 20px; border-radius: 6px; margin-bottom: 20px; border: 1px solid var(--fl-border); }
.section-title { color: var(--fl-green); font-size: 16px; font-weight: bold; margin-bottom: 15px; border-bottom: 1px solid var(--fl-border); padding-bottom: 5px; }
.trace-item { margin-bottom: 10px; padding: 10px; background: var(--fl-bg); border-radius: 4px; }
.trace-number { color: var(--fl-error); font-weight: bold; }
.trace-location { color: var(--fl-info); }
.trace-function { color: var(--fl-warning); }
.context-line { padding: 2px 0; }
.context-line-number { color: var(--fl-muted); width: 40px; display: inline-block; text-align: right; margin-right: 15px; }
.context-line-current { background: rgba(207,74,34,0.2); border-left: 3px solid var(--fl-error); padding-left: 10px; }
.previous-item { margin-bottom: 10px; }
pre { margin: 0; white-space: pre-wrap; }
"""


# ============================================================================
# Templates
# ============================================================================

_PRODUCTION_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Server Error</title>
    <style>{{ css|safe }}</style>
</head>
<body>
    <div class="container">
        <h1>Server Error</h1>
        <div class="error-code">Error {{ status_code }}</div>
        <p>We're sorry, but something went wrong on our end. Please try again later.</p>
    </div>
</body>
</html>"""

_DEBUG_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{{ exception.class_name }}: {{ exception.message }}</title>
    <style>{{ css|safe }}</style>
</head>
<body>
    <div class="container">
        <div class="header">
            <div class="exception-class">{{ exception.class_name }}</div>
            <div class="exception-message">{{ exception.message }}</div>
            <div class="exception-location">in {{ exception.file }} line {{ exception.line }}</div>
            <div class="memory-info">Memory: {{ memory.current_formatted }} (Peak: {{ memory.peak_formatted }})</div>
        </div>
{% if context %}
        <div class="section">
            <div class="section-title">Source Context</div>
            <pre>
{%- for lineno, code, current in context %}<div class="context-line{% if current %} context-line-current{% endif %}"><span class="context-line-number">{{ lineno }}</span><span class="context-code">{{ code }}</span></div>{% endfor -%}
            </pre>
        </div>
{% endif %}
        <div class="section">
            <div class="section-title">Stack Trace</div>
{% for frame in frames %}
            <div class="trace-item">
                <span class="trace-number">#{{ loop.index0 }}</span>
                <span class="trace-location">{{ frame.location }}</span><br>
                <span class="trace-function">{{ frame.function }}()</span>
            </div>
{% endfor %}
        </div>
{% if previous %}
        <div class="section">
            <div class="section-title">Previous Exceptions</div>
{% for link in previous %}
            <div class="previous-item">
                <span class="exception-class">{{ link.class_name }}</span>: {{ link.message }}<br>
                <span class="trace-location">{{ link.file }}:{{ link.line }}</span>
            </div>
{% endfor %}
        </div>
{% endif %}
    </div>
</body>
</html>"""


_env = Environment(
    autoescape=select_autoescape(
        enabled_extensions=["html", "htm", "xml"],
        default_for_string=True,
    ),
)


class HtmlErrorRenderer(ErrorRenderer):
    """
    Render exceptions as HTML pages.

    The production page shows only the status code. The debug page shows
    class, message, location, memory, source context, trace and the
    previous exceptions.
    """

    context_lines = 8

    def __init__(self, debug: bool = False):
        super().__init__(debug)
        self._production_page = _env.from_string(_PRODUCTION_TEMPLATE)
        self._debug_page = _env.from_string(_DEBUG_TEMPLATE)

    def render(self, exception: FlattenException) -> str:
        if self.debug:
            return self._render_debug(exception)
        return self._production_page.render(css=_PRODUCTION_CSS, status_code=exception.status_code)

    def _render_debug(self, exception: FlattenException) -> str:
        return self._debug_page.render(
            css=_DEBUG_CSS,
            exception=exception,
            memory=Debug.get_memory_info(),
            context=self._source_lines(exception),
            frames=self._frames(exception),
            previous=exception.chain()[1:],
        )

    def _source_lines(self, exception: FlattenException) -> List[Tuple[int, str, bool]]:
        context = Debug.get_file_context(exception.file, exception.line, self.context_lines)
        return [(lineno, code, lineno == exception.line) for lineno, code in context.items()]

    def _frames(self, exception: FlattenException) -> List[Dict[str, Any]]:
        frames = []
        for frame in exception.trace:
            if "file" in frame:
                location = f"{frame['file']}:{frame.get('line', '?')}"
            else:
                location = "[internal function]"
            frames.append({"location": location, "function": frame_function(frame)})
        return frames
