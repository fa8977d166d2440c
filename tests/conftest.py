import base64
import io
from urllib.error import URLError

import pytest
from PIL import Image

import style_grabber

PAGE_URL = "https://x.test/dir/page.html"

SAMPLE_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Sample</title>
  <link rel="stylesheet" href="css/site.css">
  <link rel="preload stylesheet" href="https://cdn.test/fonts.css">
  <link rel="icon" href="/favicon.ico">
  <style>
    @import url('https://fonts.googleapis.com/css2?family=Inter');
    :root { --brand-font: "Brand Sans"; }
    body { font-family: var(--brand-font), Helvetica, sans-serif; font-size: 16px; }
    h1.title { font-size: 2em; }
    .small { font-size: 12px !important; }
    @media (min-width: 600px) { p { font-family: 'Georgia', serif; } }
  </style>
</head>
<body>
  <h1 class="title" style="color: #FF0000; margin: 1px">Hello</h1>
  <p class="small" style="font-size: 20px">Tiny &amp; small</p>
  <div style="background-color: rgb(0, 128, 255); font-family: 'Courier New', monospace">x</div>
</body>
</html>
"""


def png_bytes(*colors, size=40):
    """Vertical stripes of the given RGB colors."""
    img = Image.new("RGB", (size, size))
    stripe = max(1, size // len(colors))
    for x in range(size):
        color = colors[min(x // stripe, len(colors) - 1)]
        for y in range(size):
            img.putpixel((x, y), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def data_uri(blob):
    return "data:image/png;base64," + base64.b64encode(blob).decode("ascii")


@pytest.fixture
def sample_document():
    return style_grabber.parse_document(SAMPLE_PAGE)


class ImageServer:
    def __init__(self):
        self.served = {}
        self.requested = []

    def fetch_bytes(self, url, timeout=style_grabber.DEFAULT_TIMEOUT):
        self.requested.append(url)
        if url not in self.served:
            raise URLError("connection refused")
        return self.served[url]


@pytest.fixture
def images(monkeypatch):
    """Serve image bytes from memory instead of the network."""
    server = ImageServer()
    monkeypatch.setattr(style_grabber, "fetch_bytes", server.fetch_bytes)
    return server


@pytest.fixture
def serve_page(monkeypatch):
    """Serve page markup for a URL; anything else fails like an unreachable host."""
    pages = {}

    def fake_fetch_text(url, timeout=style_grabber.DEFAULT_TIMEOUT):
        if url not in pages:
            raise URLError("Name or service not known")
        return pages[url]

    monkeypatch.setattr(style_grabber, "fetch_text", fake_fetch_text)
    return pages
