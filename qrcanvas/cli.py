"""QR-Canvas CLI: render QR codes to PNG/SVG, verify scans, serve downloads."""

import argparse
import re
import sys
from pathlib import Path
from urllib.parse import urlparse

from qrcanvas.config import DEFAULT_SIZE, ECC_LEVELS, OutputFormat, RenderConfig
from qrcanvas.errors import InvalidInputError, QRCanvasError
from qrcanvas.logging import audit, get_logger, setup_logging

log = get_logger("cli")

URL_PATTERN = re.compile(r"^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)/?$", re.IGNORECASE)


def url_hostname(text: str) -> str | None:
    """Hostname of *text* if it looks like a URL (scheme optional), else None."""
    value = text.strip()
    if not URL_PATTERN.match(value):
        return None
    parsed = urlparse(value if value.lower().startswith("http") else f"https://{value}")
    return parsed.hostname


def cmd_generate(args):
    """Render a QR code to a file."""
    from qrcanvas.encoder import get_encoder
    from qrcanvas.export import FileExporter
    from qrcanvas.generator import QRGenerator

    output = Path(args.output)
    extension = output.suffix.lstrip(".").lower()
    fmt = args.format or extension or "png"
    config = RenderConfig.from_options({
        "size": args.size,
        "ecc": args.ecc,
        "format": fmt,
        "foreground": args.fg,
        "background": args.bg,
    })
    if extension and extension != config.format.value:
        raise InvalidInputError(f"Output file {output.name} does not match format {config.format.value}")
    if args.verify and config.format is not OutputFormat.PNG:
        raise InvalidInputError("--verify needs png output")

    generator = QRGenerator(encoder=get_encoder(args.encoder), exporter=FileExporter(output))
    result = generator.generate(args.text, config, logo=args.logo)
    path = result.exported

    host = url_hostname(args.text)
    if host:
        print(f"URL:       {host}")
    print(f"Generated: {path} ({config.size}x{config.size} {config.format.value}, ECC {config.ecc})")
    for warning in result.warnings:
        print(f"  Warning: {warning}")

    if args.verify:
        from qrcanvas.verify import verify_artifact

        results = verify_artifact(result.artifact, expected_data=args.text)
        for r in results:
            status = "PASS" if r.success else "FAIL"
            print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
        if not any(r.success for r in results):
            sys.exit(1)


def cmd_verify(args):
    """Verify a QR code image."""
    from PIL import Image

    from qrcanvas.verify import verify

    img = Image.open(args.image)
    results = verify(img, expected_data=args.expected)

    all_pass = True
    for r in results:
        status = "PASS" if r.success else "FAIL"
        if not r.success:
            all_pass = False
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")

    sys.exit(0 if all_pass else 1)


def cmd_serve(args):
    """Start the download server."""
    from qrcanvas.server import create_app

    app = create_app()
    print(f"Starting QR server on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrcanvas", description="QR-Canvas: render QR codes to PNG and SVG")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Render a QR code")
    p_gen.add_argument("text", help="URL or text to encode")
    p_gen.add_argument("-o", "--output", default="output/qr.png", help="Output file or directory")
    p_gen.add_argument("-s", "--size", type=int, default=DEFAULT_SIZE, help="Output size in pixels")
    p_gen.add_argument("-e", "--ecc", default="M", choices=list(ECC_LEVELS), help="Error correction level")
    p_gen.add_argument("-f", "--format", default=None, choices=["png", "svg"],
                       help="Output format (default: from the output extension, else png)")
    p_gen.add_argument("--fg", default="#000000", help="Foreground colour (#RGB or #RRGGBB)")
    p_gen.add_argument("--bg", default="#FFFFFF", help="Background colour (#RGB or #RRGGBB)")
    p_gen.add_argument("--logo", default=None, help="PNG/JPEG logo to place in the centre")
    p_gen.add_argument("--encoder", default="qrcode", choices=["qrcode", "segno"], help="QR encoder backend")
    p_gen.add_argument("--verify", action="store_true", help="Scan the PNG after rendering")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Start the download server")
    p_serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    p_serve.add_argument("--port", type=int, default=8080, help="Port to listen on")
    p_serve.add_argument("--debug", action="store_true", help="Enable debug mode")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    setup_logging(level="DEBUG" if args.verbose else None, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "generate": cmd_generate,
        "verify": cmd_verify,
        "serve": cmd_serve,
    }
    try:
        commands[args.command](args)
    except QRCanvasError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
