"""HTML for the interactive GraphQL Playground page.

The page loads the playground React bundle from a CDN and boots it with
the endpoint configuration embedded as JSON.
"""

from __future__ import annotations

import html
import json
from typing import Any

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset=utf-8 />
  <meta name="viewport" content="user-scalable=no, initial-scale=1.0, minimum-scale=1.0, maximum-scale=1.0, minimal-ui">
  <title>{title}</title>
  <link rel="stylesheet" href="{bundle_url}/build/static/css/index.css" />
  <link rel="shortcut icon" href="{bundle_url}/build/favicon.png" />
  <script src="{bundle_url}/build/static/js/middleware.js"></script>
</head>
<body>
  <div id="root">
    <div class="loading">Loading <span class="title">{title}</span></div>
  </div>
  <script>
    window.addEventListener('load', function (event) {{
      var root = document.getElementById('root');
      root.classList.add('playgroundIn');
      GraphQLPlayground.init(root, {config});
    }});
  </script>
</body>
</html>
"""


def _safe_json(value: Any) -> str:
    # Keep "</script>" and friends out of the inline script
    return (
        json.dumps(value, default=str)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def render_playground_page(options: dict[str, Any]) -> str:
    """Render the playground page.

    Args:
        options: Renderer options. ``endpoint`` and ``subscriptionEndpoint``
            locate the GraphQL server; ``title``, ``version`` and ``cdnUrl``
            shape the page; every other key is forwarded to the
            playground's ``init`` call.

    Returns:
        The complete HTML document.
    """
    options = dict(options)
    title = str(options.pop("title", "Playground"))
    version = str(options.pop("version", "1.7.33"))
    cdn_url = str(options.pop("cdnUrl", "//cdn.jsdelivr.net/npm")).rstrip("/")

    bundle_url = f"{cdn_url}/@apollographql/graphql-playground-react@{version}"

    return _PAGE_TEMPLATE.format(
        title=html.escape(title),
        bundle_url=html.escape(bundle_url, quote=True),
        config=_safe_json(options),
    )
