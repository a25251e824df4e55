# src/server/rewrite.py — v1
"""Pure markup transformations applied to served HTML and CSS.

rewrite_html() turns root-relative references into base-relative ones,
installs exactly one <base> pointing at the site's serving root, and appends
the navigation overlay script. rewrite_css_urls() does the url(/...) part for
stylesheets. Nothing here depends on the request or any live state.
"""

from __future__ import annotations

import html
import re
from urllib.parse import quote

from wispview.vfs.paths import DirectoryListing

_BASE_TAG_RE = re.compile(r"<base\b[^>]*>", re.IGNORECASE)
_REWRITABLE_TAG_RE = re.compile(
    r"<(?:a|link|script|img|source|iframe|embed)\b[^>]*>", re.IGNORECASE
)
_ROOTED_ATTR_RE = re.compile(
    r"((?<![\w-])(?:href|src)\s*=\s*)(['\"])/(?!/)", re.IGNORECASE
)
_SRCSET_ATTR_RE = re.compile(r"((?<![\w-])srcset\s*=\s*)(['\"])(.*?)\2", re.IGNORECASE | re.DOTALL)
_HEAD_OPEN_RE = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
_HTML_OPEN_RE = re.compile(r"<html(?:\s[^>]*)?>", re.IGNORECASE)
_BODY_OPEN_RE = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)
_CSS_URL_RE = re.compile(r"url\(\s*(['\"]?)/(?!/)([^'\")]+)\1\s*\)", re.IGNORECASE)

_OVERLAY_TEMPLATE = """(function () {
  'use strict';
  if (document.getElementById('wisp-overlay-container')) return;
  var PREFIX = '/__PREFIX__/';
  var container = document.createElement('div');
  container.id = 'wisp-overlay-container';
  var style = document.createElement('style');
  style.textContent =
    '#wisp-overlay-container{pointer-events:none;position:fixed;bottom:16px;left:0;width:100vw;' +
    'display:flex;justify-content:center;z-index:2147483647;font-family:system-ui,sans-serif}' +
    '#wisp-back-button{pointer-events:all;display:flex;align-items:center;gap:8px;padding:8px 16px;' +
    'background:rgba(255,255,255,.95);box-shadow:0 4px 12px rgba(0,0,0,.15);border-radius:8px;' +
    'border:1px solid rgba(0,0,0,.1);font-size:14px;font-weight:500;color:#374151;text-decoration:none}' +
    '#wisp-close-button{pointer-events:all;margin-left:4px;width:20px;height:20px;border:0;' +
    'border-radius:50%;background:#ef4444;color:#fff;cursor:pointer;font-size:12px;line-height:1}';
  document.head.appendChild(style);
  var back = document.createElement('a');
  back.id = 'wisp-back-button';
  back.href = '/';
  back.textContent = '\\u2190 Back to Resolver';
  var close = document.createElement('button');
  close.id = 'wisp-close-button';
  close.textContent = '\\u00d7';
  close.title = 'Hide overlay';
  close.setAttribute('aria-label', 'Hide overlay');
  close.addEventListener('click', function (e) {
    e.preventDefault();
    e.stopPropagation();
    container.remove();
  });
  container.appendChild(back);
  container.appendChild(close);

  function init() {
    if (window.location.pathname.indexOf(PREFIX) !== 0) return;
    document.body.appendChild(container);
    var parts = window.location.pathname.split('/');
    if (parts.length < 4) return;
    var siteRoot = PREFIX + parts[2] + '/' + parts[3] + '/';
    document.addEventListener('click', function (e) {
      var link = e.target.closest && e.target.closest('a');
      if (!link || link.id === 'wisp-back-button') return;
      var href = link.getAttribute('href');
      if (!href || href.charAt(0) !== '/' || href.indexOf('//') === 0) return;
      if (href.indexOf(PREFIX) === 0) return;
      var target = link.getAttribute('target');
      if (target && target !== '_self') return;
      if (link.hasAttribute('download')) return;
      e.preventDefault();
      e.stopPropagation();
      window.location.href = siteRoot + href.replace(/^\\//, '');
    }, false);
  }

  if (document.readyState === 'loading') {
    document.addEventListener('DOMContentLoaded', init);
  } else {
    init();
  }
})();"""


def overlay_script(prefix: str = "wisp") -> str:
    """The navigation overlay as a complete <script> element."""
    body = _OVERLAY_TEMPLATE.replace("__PREFIX__", prefix.strip("/"))
    return f"<script>{body}</script>"


def _strip_rooted_srcset(value: str) -> str:
    candidates = []
    for candidate in value.split(","):
        stripped = candidate.lstrip()
        lead = candidate[: len(candidate) - len(stripped)]
        if stripped.startswith("/") and not stripped.startswith("//"):
            stripped = stripped[1:]
        candidates.append(lead + stripped)
    return ",".join(candidates)


def _rewrite_tag(match: re.Match[str]) -> str:
    tag = _ROOTED_ATTR_RE.sub(lambda m: m.group(1) + m.group(2), match.group(0))
    return _SRCSET_ATTR_RE.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{_strip_rooted_srcset(m.group(3))}{m.group(2)}",
        tag,
    )


def rewrite_absolute_references(markup: str) -> str:
    """Drop the leading slash of root-relative href/src/srcset values.

    Only anchor, link, script, img, source, iframe and embed elements are
    touched. Absolute URLs and protocol-relative ``//host`` values stay.
    """
    return _REWRITABLE_TAG_RE.sub(_rewrite_tag, markup)


def inject_base_tag(markup: str, base_path: str) -> str:
    """Replace any <base> declarations with one pointing at ``base_path``."""
    base_tag = f'<base href="{html.escape(base_path, quote=True)}">'
    result = _BASE_TAG_RE.sub("", markup)

    head = _HEAD_OPEN_RE.search(result)
    if head:
        return f"{result[: head.end()]}\n  {base_tag}{result[head.end():]}"

    html_open = _HTML_OPEN_RE.search(result)
    if html_open:
        return (
            f"{result[: html_open.end()]}\n<head>\n  {base_tag}\n</head>"
            f"{result[html_open.end():]}"
        )

    return f"<!DOCTYPE html><html><head>\n  {base_tag}\n</head><body>{result}</body></html>"


def append_overlay(markup: str, prefix: str = "wisp") -> str:
    """Place the overlay script before the closing body tag."""
    script = overlay_script(prefix)

    closes = list(_BODY_CLOSE_RE.finditer(markup))
    if closes:
        at = closes[-1].start()
        return f"{markup[:at]}{script}\n{markup[at:]}"

    body_open = _BODY_OPEN_RE.search(markup)
    if body_open:
        return f"{markup[: body_open.end()]}\n{script}{markup[body_open.end():]}"

    return markup + script


def rewrite_html(markup: str, base_path: str, prefix: str = "wisp") -> str:
    """Full HTML post-processing for a served page."""
    result = rewrite_absolute_references(markup)
    result = inject_base_tag(result, base_path)
    return append_overlay(result, prefix)


def rewrite_css_urls(css: str) -> str:
    """``url(/x)`` to ``url("x")``; data, relative and absolute URLs stay."""
    return _CSS_URL_RE.sub(lambda m: f'url("{m.group(2)}")', css)


def render_directory_listing(listing: DirectoryListing) -> str:
    """Minimal index page: parent link, sorted subdirectories, sorted files.

    Links are root-relative so rewrite_html() can rebase them like any page.
    """
    path = listing.path
    title = html.escape(f"/{path}" if path else "/")
    segments = path.split("/") if path else []

    items: list[str] = []
    if segments:
        parent = "/".join(segments[:-1])
        items.append(f'<li><a href="/{quote(parent)}">../</a></li>')
    for name in sorted(listing.dirs):
        href = quote("/".join([*segments, name]))
        items.append(f'<li><a href="/{href}/">{html.escape(name)}/</a></li>')
    for name in sorted(listing.files):
        href = quote("/".join([*segments, name]))
        items.append(f'<li><a href="/{href}">{html.escape(name)}</a></li>')

    entries = "\n    ".join(items)
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Index of {title}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 800px; margin: 2rem auto; padding: 0 1rem; }}
    h1 {{ border-bottom: 1px solid #ccc; padding-bottom: 0.5rem; }}
    ul {{ list-style: none; padding: 0; }}
    li {{ padding: 0.5rem 0; border-bottom: 1px solid #eee; }}
    a {{ color: #0066cc; text-decoration: none; }}
  </style>
</head>
<body>
  <h1>Index of {title}</h1>
  <ul>
    {entries}
  </ul>
</body>
</html>"""
