#!/usr/bin/env python3
"""Style Grabber: extract a color palette, fonts, font sizes and stylesheet URLs from a URL."""

from __future__ import annotations

import argparse
import codecs
import io
import json
import logging
import math
import re
import ssl
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from http.client import HTTPException
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlparse
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup
from bs4.element import Tag
from colorthief import ColorThief
from PIL import Image

DEFAULT_TIMEOUT = 20
UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
MAX_COLORS = 10
PALETTE_SIZE = 5
PALETTE_QUALITY = 10
PALETTE_MAX_SIDE = 256
IMAGE_WORKERS = 8
MAX_VAR_DEPTH = 6
GENERIC_FAMILIES = frozenset({"serif", "sans-serif", "monospace", "cursive", "fantasy"})
TYPE_PROPS = ("font-family", "font-size")
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"

INLINE_COLOR_RE = re.compile(r"color:\s*(#(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})\b|rgb\([^)]+\))")
IMPORT_URL_RE = re.compile(r"@import\s+url\(['\"](https?://[^'\"]+)['\"]\)")
CSS_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
AT_STATEMENT_RE = re.compile(r"@(?:import|charset|namespace)\b[^;{]*;", re.I)
IMPORTANT_RE = re.compile(r"\s*!\s*important\b\s*", re.I)
VAR_RE = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*((?:[^()]|\([^()]*\))*))?\)")
PSEUDO_RE = re.compile(r"::?[a-zA-Z-]+(?:\([^)]*\))?")

logger = logging.getLogger(__name__)


class StyleGrabberError(Exception):
    """Base class for every failure raised by the extraction pipeline."""


class ValidationError(StyleGrabberError):
    pass


class FetchError(StyleGrabberError):
    def __init__(self, url: str, status: Optional[int] = None, reason: str = "", headers: Optional[Dict[str, str]] = None) -> None:
        self.url = url
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        detail = f"HTTP {status} {reason}".strip() if status else reason
        super().__init__(f"Failed to fetch {url}: {detail}")


class AnalysisError(StyleGrabberError):
    pass


class ImageExtractionError(StyleGrabberError):
    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"{url}: {reason}")


class UrlResolutionError(StyleGrabberError):
    def __init__(self, href: Optional[str], reason: str) -> None:
        self.href = href
        super().__init__(f"Cannot resolve {href!r}: {reason}")


class RenderTimeoutError(StyleGrabberError):
    pass


@dataclass(frozen=True)
class AnalysisResult:
    colors: Tuple[str, ...]
    fonts: Tuple[str, ...]
    font_sizes: Tuple[str, ...]
    css_urls: Tuple[str, ...]
    html: str = ""

    def __post_init__(self) -> None:
        for name in ("colors", "fonts", "font_sizes", "css_urls"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def to_dict(self, include_html: bool = True) -> Dict[str, object]:
        out: Dict[str, object] = {
            "colors": list(self.colors),
            "fonts": list(self.fonts),
            "fontSizes": list(self.font_sizes),
            "cssUrls": list(self.css_urls),
        }
        if include_html:
            out["html"] = self.html
        return out


@dataclass
class CSSRule:
    selector: str
    declarations: Dict[str, Tuple[str, bool]]
    order: int


def parse_document(html_text: str) -> BeautifulSoup:
    return BeautifulSoup(html_text, "html.parser")


def attr(tag: Tag, name: str) -> str:
    """Attribute value as a string; multi-valued attributes come back space-joined."""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def class_set(tag: Tag) -> frozenset:
    return frozenset(attr(tag, "class").split())


def style_text(tag: Tag) -> str:
    return tag.string or ""


def decode_body(body: bytes, charset: str) -> str:
    try:
        codecs.lookup(charset)
    except LookupError:
        logger.debug("Unknown charset %r, decoding as utf-8", charset)
        charset = "utf-8"
    return body.decode(charset, errors="replace")


def open_url(req: Request, timeout: int) -> Tuple[bytes, str]:
    try:
        with urlopen(req, timeout=timeout) as res:
            return res.read(), res.headers.get_content_charset() or "utf-8"
    except (ssl.SSLCertVerificationError, URLError) as exc:
        should_retry = isinstance(exc, ssl.SSLCertVerificationError)
        if isinstance(exc, URLError) and isinstance(exc.reason, ssl.SSLCertVerificationError):
            should_retry = True
        if not should_retry:
            raise
        logger.debug("Retrying %s without certificate verification", req.full_url)
        with urlopen(req, timeout=timeout, context=ssl._create_unverified_context()) as res:
            return res.read(), res.headers.get_content_charset() or "utf-8"


def fetch_text(url: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    req = Request(
        url,
        headers={
            "User-Agent": UA,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Upgrade-Insecure-Requests": "1",
        },
    )
    body, charset = open_url(req, timeout)
    return decode_body(body, charset)


def fetch_bytes(url: str, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    req = Request(
        url,
        headers={
            "User-Agent": UA,
            "Accept": "image/avif,image/webp,image/png,image/*;q=0.8,*/*;q=0.5",
            "Accept-Language": "en-US,en;q=0.9",
        },
    )
    body, _ = open_url(req, timeout)
    return body


def fetch_page(url: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    try:
        return fetch_text(url, timeout=timeout)
    except HTTPError as exc:
        headers = {k.lower(): v for k, v in (exc.headers or {}).items()}
        raise FetchError(url, status=exc.code, reason=str(exc.reason or ""), headers=headers) from exc
    except URLError as exc:
        raise FetchError(url, reason=str(exc.reason)) from exc
    except (HTTPException, OSError) as exc:
        raise FetchError(url, reason=str(exc) or type(exc).__name__) from exc


def validate_target_url(url: Optional[str]) -> str:
    value = (url or "").strip()
    try:
        p = urlparse(value)
        p.port
    except ValueError as exc:
        raise ValidationError(f"Malformed URL: {value!r}") from exc
    if p.scheme not in {"http", "https"} or not p.hostname:
        raise ValidationError(f"Expected an absolute http(s) URL, got {value!r}")
    return value


def resolve_url(href: Optional[str], base_url: str, schemes: Iterable[str] = ("http", "https")) -> str:
    value = (href or "").strip()
    if not value:
        raise UrlResolutionError(href, "empty reference")
    try:
        full = urljoin(base_url, value)
        parsed = urlparse(full)
        parsed.port
    except ValueError as exc:
        raise UrlResolutionError(href, str(exc)) from exc
    if parsed.scheme not in set(schemes):
        raise UrlResolutionError(href, f"unsupported scheme {parsed.scheme!r}")
    if parsed.scheme in ("http", "https") and not parsed.netloc:
        raise UrlResolutionError(href, "missing host")
    return full


def document_base_url(document: BeautifulSoup, page_url: str) -> str:
    base = document.find("base", href=True)
    if base is None or not attr(base, "href").strip():
        return page_url
    try:
        return resolve_url(attr(base, "href"), page_url)
    except UrlResolutionError as exc:
        logger.debug("Ignoring <base>: %s", exc)
    return page_url


def split_declarations(block: str) -> Iterator[str]:
    # Semicolons inside url(...) or other functions do not end a declaration.
    depth = 0
    start = 0
    for i, ch in enumerate(block):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == ";" and depth == 0:
            yield block[start:i]
            start = i + 1
    yield block[start:]


def parse_rule_declarations(block: Optional[str]) -> Dict[str, Tuple[str, bool]]:
    out: Dict[str, Tuple[str, bool]] = {}
    for part in split_declarations(block or ""):
        prop, sep, val = part.partition(":")
        if not sep:
            continue
        prop = prop.strip()
        if not prop.startswith("--"):
            prop = prop.lower()
        important = bool(IMPORTANT_RE.search(val))
        val = clean_css_value(val)
        if prop and val:
            out[prop] = (val, important)
    return out


def clean_css_value(value: Optional[str]) -> str:
    return IMPORTANT_RE.sub(" ", value or "").strip()


def split_rules(css: str) -> List[Tuple[str, str]]:
    """Split stylesheet text into top-level ``(prelude, body)`` pairs.

    Comments and block-less at-rules are dropped. Nested bodies such as
    ``@media`` come back whole; a block left open at the end of the text is
    closed there.
    """
    css = AT_STATEMENT_RE.sub("", COMMENT_RE.sub("", css))
    pairs: List[Tuple[str, str]] = []
    depth = 0
    head = ""
    head_start = body_start = 0
    for i, ch in enumerate(css):
        if ch == "{":
            if depth == 0:
                head = css[head_start:i].strip()
                body_start = i + 1
            depth += 1
        elif ch == "}":
            if depth == 1 and head:
                pairs.append((head, css[body_start:i]))
            if depth <= 1:
                head_start = i + 1
            depth = max(0, depth - 1)
    if depth and head:
        pairs.append((head, css[body_start:]))
    return pairs


def expand_css_rules(css_text: str, start_order: int = 0) -> Tuple[List[CSSRule], int]:
    rules: List[CSSRule] = []
    order = start_order
    for head, body in split_rules(css_text):
        if head.startswith("@"):
            if head.lower().startswith(("@font-face", "@keyframes", "@-webkit-keyframes", "@page")):
                continue
            nested, order = expand_css_rules(body, order)
            rules.extend(nested)
            continue
        decls = parse_rule_declarations(body)
        if not decls:
            continue
        for selector in [s.strip() for s in head.split(",") if s.strip()]:
            rules.append(CSSRule(selector=selector, declarations=decls, order=order))
            order += 1
    return rules, order


def resolve_vars(value: str, var_map: Dict[str, str], depth: int = 0) -> str:
    """Substitute ``var(--name, fallback)`` references, fallbacks included.

    Self-referencing or overly deep chains resolve to an empty value.
    """
    if "var(" not in value:
        return value
    if depth > MAX_VAR_DEPTH:
        return ""

    def repl(match: re.Match[str]) -> str:
        fallback = (match.group(2) or "").strip()
        return resolve_vars(var_map.get(match.group(1), fallback), var_map, depth + 1)

    return VAR_RE.sub(repl, value)


def build_var_map(rules: List[CSSRule]) -> Dict[str, str]:
    # Later declarations win unless an earlier one is !important.
    chosen: Dict[str, Tuple[bool, str]] = {}
    for rule in rules:
        for prop, (val, important) in rule.declarations.items():
            if not prop.startswith("--"):
                continue
            if important or not chosen.get(prop, (False, ""))[0]:
                chosen[prop] = (important, val)
    return {prop: val for prop, (_, val) in chosen.items()}


def remove_pseudo(selector: str) -> str:
    return PSEUDO_RE.sub("", selector).strip()


def calc_specificity(selector: str) -> Tuple[int, int, int]:
    s = remove_pseudo(selector)
    ids = len(re.findall(r"#[a-zA-Z0-9_-]+", s))
    classes = len(re.findall(r"\.[a-zA-Z0-9_-]+", s)) + len(re.findall(r"\[[^\]]+\]", s))
    bare = re.sub(r"\[[^\]]+\]", "", re.sub(r"[#.][a-zA-Z0-9_-]+", "", s))
    types = len(re.findall(r"\b[a-zA-Z][a-zA-Z0-9_-]*\b", bare))
    return (ids, classes, types)


@dataclass(frozen=True)
class CompoundSelector:
    tag: Optional[str]
    ids: Tuple[str, ...]
    classes: Tuple[str, ...]
    attrs: Tuple[Tuple[str, Optional[str]], ...]

    def matches(self, element: Tag) -> bool:
        if self.tag and self.tag != element.name:
            return False
        if self.ids and any(found != attr(element, "id") for found in self.ids):
            return False
        if self.classes and not set(self.classes) <= class_set(element):
            return False
        for name, value in self.attrs:
            if not element.has_attr(name):
                return False
            if value is not None and attr(element, name) != value:
                return False
        return True


def compile_selector(selector: str) -> Optional[CompoundSelector]:
    s = selector.strip()
    if s.lower() == ":root":
        s = "html"
    s = remove_pseudo(s)
    if not s:
        return None
    s = re.sub(r"\s*([>+~])\s*", r"\1", s)
    tail = re.split(r"\s+|>|\+|~", s)[-1].strip()
    if not tail:
        return None

    attrs = tuple(
        (m.group(1).lower(), m.group(3) if m.group(2) else None)
        for m in re.finditer(r"\[\s*([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*(=\s*[\"']?([^\"'\]]*)[\"']?)?\s*\]", tail)
    )
    bare = re.sub(r"\[[^\]]*\]", "", tail)
    if "[" in bare or "(" in bare:
        return None
    m = re.match(r"^[a-zA-Z][a-zA-Z0-9_-]*", bare)
    compound = CompoundSelector(
        tag=m.group(0).lower() if m else None,
        ids=tuple(re.findall(r"#([a-zA-Z0-9_-]+)", bare)),
        classes=tuple(re.findall(r"\.([a-zA-Z0-9_-]+)", bare)),
        attrs=attrs,
    )
    if bare != "*" and not (compound.tag or compound.ids or compound.classes or compound.attrs):
        return None
    return compound


def pick_img_src(element: Tag) -> str:
    for key in ("src", "data-src", "data-lazy-src", "data-original"):
        val = attr(element, key).strip()
        if val:
            return val
    for key in ("srcset", "data-srcset"):
        srcset = attr(element, key).strip()
        if srcset:
            return srcset.split(",", 1)[0].strip().split(" ", 1)[0].strip()
    return ""


def inline_style_colors(document: BeautifulSoup) -> List[str]:
    colors: Dict[str, None] = {}
    for element in document.find_all(style=True):
        for match in INLINE_COLOR_RE.finditer(attr(element, "style")):
            colors.setdefault(match.group(1).strip())
    return list(colors)


def collect_image_urls(document: BeautifulSoup, base_url: str) -> List[str]:
    urls: Dict[str, None] = {}
    for img in document.find_all("img"):
        try:
            urls.setdefault(resolve_url(pick_img_src(img), base_url, schemes=("http", "https", "data")))
        except UrlResolutionError as exc:
            logger.debug("Skipping image: %s", exc)
    return list(urls)


def image_palette(blob: bytes, color_count: int = PALETTE_SIZE, quality: int = PALETTE_QUALITY) -> List[str]:
    """Decode raster bytes and return their dominant colors as ``rgb(r,g,b)`` strings.

    Pillow does the decoding; ColorThief's median-cut quantizer picks the
    palette. Large images are downscaled first since the palette is stable
    under resizing.
    """
    with Image.open(io.BytesIO(blob)) as img:
        frame = img.convert("RGBA")
    frame.thumbnail((PALETTE_MAX_SIDE, PALETTE_MAX_SIDE))
    buf = io.BytesIO()
    frame.save(buf, format="PNG")
    buf.seek(0)
    palette = ColorThief(buf).get_palette(color_count=color_count, quality=quality)
    return [f"rgb({r},{g},{b})" for r, g, b in palette[:color_count]]


def fetch_image_palette(url: str, timeout: int = DEFAULT_TIMEOUT) -> List[str]:
    try:
        return image_palette(fetch_bytes(url, timeout=timeout))
    except Exception as exc:
        raise ImageExtractionError(url, str(exc) or type(exc).__name__) from exc


def image_palettes(urls: List[str], timeout: int = DEFAULT_TIMEOUT, workers: int = IMAGE_WORKERS) -> List[List[str]]:
    """Fetch and quantize every image concurrently; failed images are left out.

    Palettes come back in the order of ``urls`` regardless of completion order.
    """
    if not urls:
        return []
    palettes: List[List[str]] = []
    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(urls)))) as pool:
        futures = [pool.submit(fetch_image_palette, url, timeout) for url in urls]
        for future in futures:
            try:
                palettes.append(future.result())
            except ImageExtractionError as exc:
                logger.warning("Skipping image colors: %s", exc)
    return palettes


def extract_colors(
    document: BeautifulSoup,
    base_url: str,
    timeout: int = DEFAULT_TIMEOUT,
    workers: int = IMAGE_WORKERS,
    max_colors: int = MAX_COLORS,
) -> List[str]:
    colors: Dict[str, None] = dict.fromkeys(inline_style_colors(document))
    for palette in image_palettes(collect_image_urls(document, base_url), timeout=timeout, workers=workers):
        for color in palette:
            colors.setdefault(color)
    return list(colors)[:max_colors]


def clean_font_families(value: Optional[str]) -> List[str]:
    fonts: List[str] = []
    for token in clean_css_value(value).split(","):
        name = re.sub(r"['\"]", "", token.strip()).strip()
        if name and name.lower() not in GENERIC_FAMILIES and name not in fonts:
            fonts.append(name)
    return fonts


def css_number(value: str) -> float:
    m = CSS_NUMBER_RE.match(value or "")
    return float(m.group(0)) if m else math.nan


def sort_font_sizes(values: Iterable[str]) -> List[str]:
    unique = list(dict.fromkeys(v for v in values if v))

    def key(value: str) -> Tuple[bool, float]:
        n = css_number(value)
        return (math.isnan(n), 0.0 if math.isnan(n) else n)

    return sorted(unique, key=key)


def embedded_stylesheet_rules(document: BeautifulSoup) -> List[CSSRule]:
    css_text = "\n".join(style_text(style) for style in document.find_all("style"))
    rules, _ = expand_css_rules(css_text)
    return rules


def compute_declared_style(
    element: Tag,
    matchers: List[Tuple[CompoundSelector, CSSRule]],
    var_map: Dict[str, str],
    props: Iterable[str] = TYPE_PROPS,
) -> Dict[str, str]:
    props = tuple(props)
    chosen: Dict[str, Tuple[Tuple[int, Tuple[int, int, int], int], str]] = {}
    for matcher, rule in matchers:
        if not matcher.matches(element):
            continue
        spec = calc_specificity(rule.selector)
        for prop in props:
            if prop not in rule.declarations:
                continue
            val, important = rule.declarations[prop]
            score = (1 if important else 0, spec, rule.order)
            if prop not in chosen or score >= chosen[prop][0]:
                chosen[prop] = (score, val)

    styles = {prop: val for prop, (_, val) in chosen.items()}
    for prop, (val, important) in parse_rule_declarations(attr(element, "style")).items():
        if prop not in props:
            continue
        rule_important = prop in chosen and chosen[prop][0][0] == 1
        if important or not rule_important:
            styles[prop] = val
    return {prop: resolve_vars(val, var_map) for prop, val in styles.items()}


def extract_fonts_and_sizes(document: BeautifulSoup) -> Tuple[List[str], List[str]]:
    rules = embedded_stylesheet_rules(document)
    var_map = build_var_map(rules)
    matchers: List[Tuple[CompoundSelector, CSSRule]] = []
    for rule in rules:
        if not any(prop in rule.declarations for prop in TYPE_PROPS):
            continue
        matcher = compile_selector(rule.selector)
        if matcher is not None:
            matchers.append((matcher, rule))

    fonts: Dict[str, None] = {}
    sizes: Dict[str, None] = {}
    for element in document.find_all(True):
        styles = compute_declared_style(element, matchers, var_map)
        for font in clean_font_families(styles.get("font-family")):
            fonts.setdefault(font)
        size = clean_css_value(styles.get("font-size"))
        if size:
            sizes.setdefault(size)
    return list(fonts), sort_font_sizes(sizes)


def extract_css_urls(document: BeautifulSoup, base_url: str) -> List[str]:
    urls: Dict[str, None] = {}
    for link in document.find_all("link"):
        if "stylesheet" not in attr(link, "rel").lower().split():
            continue
        try:
            urls.setdefault(resolve_url(attr(link, "href"), base_url))
        except UrlResolutionError as exc:
            logger.debug("Skipping stylesheet link: %s", exc)
    for style in document.find_all("style"):
        for match in IMPORT_URL_RE.finditer(style_text(style)):
            urls.setdefault(match.group(1))
    return list(urls)


def analyze(target_url: str, timeout: int = DEFAULT_TIMEOUT, workers: int = IMAGE_WORKERS) -> AnalysisResult:
    """Fetch ``target_url`` and derive its style fingerprint.

    Raises ValidationError before any network access for a malformed URL,
    FetchError when the page cannot be retrieved, and AnalysisError for any
    other failure while parsing or extracting. Individual images and links
    that fail are skipped without failing the analysis.
    """
    url = validate_target_url(target_url)
    html_text = fetch_page(url, timeout=timeout)
    try:
        document = parse_document(html_text)
        base_url = document_base_url(document, url)
        colors = extract_colors(document, base_url, timeout=timeout, workers=workers)
        fonts, font_sizes = extract_fonts_and_sizes(document)
        css_urls = extract_css_urls(document, base_url)
        markup = str(document)
    except Exception as exc:
        raise AnalysisError(f"Failed to analyze {url}: {exc}") from exc

    logger.info(
        "Analyzed %s: %d colors, %d fonts, %d sizes, %d stylesheets",
        url, len(colors), len(fonts), len(font_sizes), len(css_urls),
    )
    return AnalysisResult(colors=colors, fonts=fonts, font_sizes=font_sizes, css_urls=css_urls, html=markup)


def classify_fetch_error(exc: Exception) -> Tuple[str, List[str]]:
    if isinstance(exc, ValidationError):
        return ("That does not look like a page address.", ["Enter a full http(s) URL, including the scheme."])

    if isinstance(exc, FetchError) and exc.status is not None:
        if exc.status == 403:
            if exc.headers.get("cf-mitigated"):
                return (
                    "No dice: their bot wall stepped in (HTTP 403 challenge).",
                    [
                        "They are serving a challenge page instead of real content.",
                        "Try a different page on the same site.",
                        "Retry later or from another network.",
                    ],
                )
            return (
                "They said no (HTTP 403).",
                [
                    "This URL is blocking automated fetches.",
                    "Try another public page that is less protected.",
                ],
            )
        if exc.status == 404:
            return ("Nothing lives at that address (HTTP 404).", ["Check the URL for typos and try again."])
        if exc.status == 429:
            return (
                "Too many requests, too fast (HTTP 429).",
                ["Their server asked us to slow down.", "Wait a few minutes, then run again."],
            )
        if exc.status >= 500:
            return (
                f"Their server is having a moment (HTTP {exc.status}).",
                ["This is likely temporary on their side.", "Retry once the site settles down."],
            )
        return (f"Request failed (HTTP {exc.status}).", ["Check the URL and try again."])

    if isinstance(exc, FetchError):
        return (
            "Couldn't reach that site from here.",
            [
                "DNS/network lookup failed or the connection timed out.",
                "Double-check the URL spelling.",
                "Retry once network access is available.",
            ],
        )

    return (f"Something unexpected went wrong: {exc}", ["Retry and confirm the URL is publicly reachable."])


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def write_output(payload: Dict[str, object], output: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Extract colors, fonts, font sizes and stylesheet URLs from a URL")
    ap.add_argument("url", help="Page URL (https://...) to inspect")
    ap.add_argument("-o", "--output", default=None, help="Output JSON file path (default: stdout)")
    ap.add_argument("--refine", action="store_true", help="Refine typography with computed styles from a headless browser")
    ap.add_argument("--settle-ms", type=int, default=None, help="Wait before reading computed styles (with --refine)")
    ap.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="Network timeout in seconds")
    ap.add_argument("--include-html", action="store_true", help="Include the serialized page markup in the output")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        result = analyze(args.url, timeout=args.timeout)
    except StyleGrabberError as exc:
        summary, hints = classify_fetch_error(exc)
        write_output({"error": summary, "hints": hints, "detail": str(exc)}, args.output)
        return 1

    if args.refine:
        from typography_refiner import SETTLE_MS, refine_typography

        settle_ms = SETTLE_MS if args.settle_ms is None else args.settle_ms
        result = refine_typography(result, base_url=args.url, settle_ms=settle_ms)

    write_output(result.to_dict(include_html=args.include_html), args.output)
    if args.output:
        logger.info("Result written to %s", args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
