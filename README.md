# pixelgate

Pure-Python building blocks for an image-processing HTTP server. The package
depends only on the standard library.

## Modules

| Module | Purpose |
| --- | --- |
| `pixelgate.security` | HMAC-SHA256 URL signatures, allowed-source checks, source resolution limits |
| `pixelgate.structdiff` | Field-by-field difference of two dataclass instances, as text or JSON |
| `pixelgate.svg` | Removes `<script>` elements and `onload` attributes from SVG documents |
| `pixelgate.color` | RGB colours parsed from 3- or 6-digit hex strings |
| `pixelgate.geometry` | Gravity placement, crop sizes, resize scale factors, EXIF orientation |
| `pixelgate.bmp` | BMP decoding (paletted, RLE, 16/24/32-bit) and 24-bit BMP encoding |
| `pixelgate.ico` | Wrapping PNG data in an ICO file, repairing headerless BMP entries |
| `pixelgate.timer` | Per-request deadline and cancellation tracking |
| `pixelgate.router` | Prefix router with request IDs, client-IP detection and access logging |
| `pixelgate.reuseport` | Listening TCP sockets, optionally with `SO_REUSEPORT` |
| `pixelgate.fs_transport` | Serving files from a local root with ETag / `If-None-Match` support |
| `pixelgate.version` | The version string |

## Signed URLs

`signature_for(message, key, salt, signature_size)` computes HMAC-SHA256 over
`salt + message` and truncates it to `signature_size` bytes when that is
below 32. `verify_signature(signature, path, keys, salts, signature_size)`
decodes the signature as unpadded URL-safe base64 and accepts it if it
matches any key/salt pair. It raises `SignatureError` ("Invalid signature
encoding" or "Invalid signature") otherwise. When no keys or no salts are
given, nothing is checked.

```python
import base64

from pixelgate.security import SignatureError, signature_for, verify_signature

keys = [b"secret"]
salts = [b"secret"]
path = "/rs:fill:4:4/plain/local:///test1.png"

mac = signature_for(path, keys[0], salts[0], 32)
signature = base64.urlsafe_b64encode(mac).rstrip(b"=").decode()

verify_signature(signature, path, keys, salts, 32)

try:
    verify_signature("AAAA", "/other/path", keys, salts, 32)
except SignatureError as exc:
    print(exc)
```

`verify_source_url(image_url, allowed_sources)` returns `True` when the URL
matches one of the patterns (compiled regexes or pattern strings, searched
with `re.search`). An empty list allows every source.
`check_dimensions(width, height, max_resolution)` raises `StatusError` with
status 422 when the pixel count is over the limit. `StatusError` carries
`status_code`, `message` and `public_message`.

## Geometry

```python
from pixelgate.geometry import GravityOptions, GravityType, calc_position

gravity = GravityOptions(type=GravityType.CENTER)
left, top = calc_position(100, 100, 40, 40, gravity, False)  # (30, 30)
```

`ScaleOptions` holds the size-related request options (width, height, DPR,
zoom, `ResizeType`, enlarge, minimum sizes). From these, `calc_scale` gives
the width and height scale factors, and `result_size` the output size.
`calc_crop_size` turns absolute or fractional crop values into pixels.
`extract_meta` applies EXIF orientation and rotation to a size.
`calc_jpeg_shrink` picks a shrink-on-load factor of 1, 2, 4 or 8. The
helpers `scale_int`, `shrink_int` and `min_non_zero` do the integer rounding
that these functions use.

## Colours, SVG and diffs

```python
from pixelgate.color import color_from_hex
from pixelgate.svg import sanitize

white = color_from_hex("fff")  # Color(r=255, g=255, b=255)
clean = sanitize(b'<svg onload="x()"><script>x()</script><rect/></svg>')
```

`color_from_hex` raises `ValueError` for anything but 3 or 6 hex digits.
`sanitize` raises `SvgError` when the document holds a NUL byte it cannot
tokenise.

`structdiff.diff(a, b)` compares two dataclass instances of the same type.
It returns `Entries`, a list of `Entry(name, value)` that holds `b`'s values
for the fields that differ. Nested dataclasses are compared recursively.
`str(entries)` gives `name: value; ...` text, and `entries.to_json()` gives
a JSON object in field order.

## BMP and ICO

`decode_bmp(data, no_alpha=True)` returns a `Bitmap` (width, height, bands,
top-row-first interleaved `data`, optional `palette_bit_depth`). It raises
`BmpError` for malformed or unsupported files. `encode_bmp(image)` writes an
RGB or RGBA `Bitmap` as a 24-bit bottom-up BMP, premultiplying alpha into
the colour bands.

`build_ico(png_data, width, height, has_alpha)` wraps PNG data as the single
image of an ICO file and rejects sizes above 256. `fix_bmp_header(data)`
turns a headerless BMP entry taken from an ICO file into a standalone BMP.
It adds the file header and halves the stored height. Both raise `IcoError`
on bad input.

## Routing and timing

```python
from pixelgate.router import Request, Router

def hello(req_id, response, request):
    response.body = b"hello"

router = Router(prefix="", write_timeout=10.0)
router.get("/health", hello, exact=True)

response = router.handle(Request(method="GET", path="/health", remote_addr="127.0.0.1:5000"))
print(response.status, response.headers["X-Request-ID"], response.body)
```

`Router.handle` works as follows:

- It keeps a valid `X-Request-ID` header or generates a new ID.
- It sets the `Server` and `X-Request-ID` response headers.
- It takes the client IP from `CF-Connecting-IP`, `X-Forwarded-For` or `X-Real-IP`.
- It logs the request and calls the first route whose method and path prefix match.
- When no route matches, it answers 404.

Each request gets a `RequestTimer`. Its `check()` raises `StatusError` 499
after `cancel()` or 503 once `write_timeout` has passed. `log_request` and
`log_response` write to the `pixelgate.router` logger and return the
logged fields.

## Local files and sockets

```python
from pixelgate.fs_transport import FsTransport

transport = FsTransport("/srv/images", etag_enabled=True)
with transport.round_trip("/test1.png") as response:
    print(response.status, response.headers.get("ETag"), len(response.read()))
```

Paths are resolved inside the root and cannot escape it. Missing files and
directories get 404. With ETags enabled, the ETag comes from the path, size
and modification time (`build_etag(path, stat_result)`). A matching
`if_none_match` gets a 304 with no body.

`reuseport.listen(host, port, reuseport=False)` returns a bound, listening
TCP socket. `SO_REUSEPORT` is set when asked for; where the platform lacks
it, a warning is logged instead.

## What this package does not do

pixelgate provides no image-processing pipeline. It has no JPEG, PNG, WebP,
GIF, AVIF or TIFF codecs, and it does not resize, crop or filter pixels; the
geometry functions only compute the numbers. There is no request handler
that parses processing options or downloads source images. There is no
remote storage access and no HTTP server loop, and the package installs no
command.