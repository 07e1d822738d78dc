"""Live-reload client — the browser side of the reload channel.

In dev mode the static responder injects a small script into every HTML
page it serves.  The script opens an ``EventSource`` on the reload endpoint
and reloads the page when a ``reload`` event arrives.  Pages that already
carry their own client (through the ``livereload`` include) are left alone.
"""

from __future__ import annotations

RELOAD_ENDPOINT = "/__reload"

# Native EventSource only; no dependencies on the page.
RELOAD_SCRIPT = """\
<script data-tern-reload>
(function() {
  var src = new EventSource('%s');
  src.onmessage = function(e) {
    if (e.data === 'reload') location.reload();
  };
  src.onerror = function() {
    src.close();
    setTimeout(function() { location.reload(); }, 2000);
  };
})();
</script>
""" % RELOAD_ENDPOINT


def inject_reload_client(html: str) -> str:
    """Insert the reload script before ``</body>`` (or ``</html>``, or at the end).

    Returns *html* unchanged if it already references the reload endpoint.

    """
    if RELOAD_ENDPOINT in html:
        return html
    if "</body>" in html:
        return html.replace("</body>", RELOAD_SCRIPT + "</body>", 1)
    if "</html>" in html:
        return html.replace("</html>", RELOAD_SCRIPT + "</html>", 1)
    return html + RELOAD_SCRIPT
