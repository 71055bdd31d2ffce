"""dotqr CLI: generate branded dot-style QR codes from the command line."""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from PIL import Image

from dotqr.logging import setup_logging, get_logger, audit

log = get_logger("cli")

# CLI flag -> GenerationRequest field
STYLE_FLAGS = {
    "module_color": "module_color",
    "eye_color": "eye_frame_color",
    "ppm": "pixels_per_module",
    "dot_size": "dot_size_factor",
    "variance": "dot_size_variance",
    "seed": "batch_seed",
    "eye_mid_radius": "eye_frame_mid_radius",
    "eye_pupil_radius": "eye_frame_pupil_radius",
    "logo": "logo_path",
}


def _parse_resolutions(s: str) -> tuple[int, ...]:
    try:
        values = tuple(int(part) for part in s.split(",") if part.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid resolution list: {s!r}") from None
    if not values or any(v <= 0 for v in values):
        raise argparse.ArgumentTypeError(f"resolutions must be positive integers: {s!r}")
    return values


def build_request(args):
    """Merge ``--config`` (if any) with URL, id and explicit style flags."""
    from dotqr.generator import GenerationRequest, load_request

    request = load_request(args.config) if getattr(args, "config", None) else GenerationRequest()
    overrides = {}
    if args.url:
        overrides["short_url"] = args.url
    if getattr(args, "qr_id", None):
        overrides["qr_id"] = args.qr_id
    for flag, field_name in STYLE_FLAGS.items():
        value = getattr(args, flag, None)
        if value is not None:
            overrides[field_name] = value
    return replace(request, **overrides)


def _print_scan(results):
    for r in results:
        status = "PASS" if r.success else "FAIL"
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")


def cmd_generate(args):
    """Generate all artifacts for one QR code."""
    from dotqr.generator import ConfigurationError, generate, write_artifacts

    request = build_request(args)
    try:
        result = generate(request, resolutions=args.resolutions)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    paths = write_artifacts(result.artifacts, args.output)
    for p in paths:
        print(f"  {p}")
    print(f"Generated {len(paths)} files for {request.qr_id} "
          f"(canonical {result.raster.width}x{result.raster.height})")

    if args.verify:
        try:
            from dotqr.verify import verify, scan_ok
        except ImportError as e:
            log.warning("Scan verification unavailable: %s", e)
            print(f"  Scan: UNAVAILABLE ({e})")
            return

        results = verify(result.raster, expected_data=request.short_url)
        _print_scan(results)
        print(f"  Scan: {'PASS' if scan_ok(results) else 'FAIL'}")


def cmd_render(args):
    """Write one canonical rendering (PNG or SVG) without the resolution set."""
    from dotqr.assets import load_logo, resolve_logo_path
    from dotqr.codec import encode_png
    from dotqr.encoder import encode
    from dotqr.layout import layout
    from dotqr.raster import raster_surface, render_raster
    from dotqr.vector import vector_surface, render_vector

    request = build_request(args)
    style = request.style()
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    matrix = encode(args.url, ecc="High")
    logo = load_logo(resolve_logo_path(style.logo_path))
    caption = "" if args.no_caption else args.url

    if output.suffix.lower() == ".svg":
        doc = render_vector(layout(matrix, style, vector_surface(), caption=caption, logo=logo))
        output.write_bytes(doc.to_bytes())
        print(f"Rendered: {output} ({doc.width:g}x{doc.height:g} modules)")
    else:
        rendering = render_raster(layout(matrix, style, raster_surface(style), caption=caption, logo=logo))
        output.write_bytes(encode_png(rendering.image))
        print(f"Rendered: {output} ({rendering.width}x{rendering.height})")


def cmd_verify(args):
    """Verify a QR code image."""
    try:
        from dotqr.verify import verify, scan_ok
    except ImportError as e:
        print(f"error: scan verification unavailable: {e}", file=sys.stderr)
        sys.exit(2)

    img = Image.open(args.image)
    results = verify(img, expected_data=args.expected)
    _print_scan(results)
    ok = scan_ok(results)
    print(f"  Scan: {'PASS' if ok else 'FAIL'}")
    sys.exit(0 if ok else 1)


def _add_style_flags(p):
    p.add_argument("--logo", default=None, help="Logo image path (absolute, or relative to the app / Logos dir)")
    p.add_argument("--module-color", default=None, help="Dot colour: name or hex (e.g. '#1A1A2E')")
    p.add_argument("--eye-color", default=None, help="Eye marker colour: name or hex")
    p.add_argument("--ppm", type=int, default=None, help="Pixels per module for the raster canvas")
    p.add_argument("--dot-size", type=float, default=None, help="Dot diameter as a fraction of a module")
    p.add_argument("--variance", type=float, default=None, help="Per-dot size jitter (0-0.04)")
    p.add_argument("--seed", type=int, default=None, help="Jitter seed")
    p.add_argument("--eye-mid-radius", type=float, default=None, help="Eye middle ring corner ratio")
    p.add_argument("--eye-pupil-radius", type=float, default=None, help="Eye pupil corner ratio")


def build_parser() -> argparse.ArgumentParser:
    from dotqr.generator import DEFAULT_OUTPUT_DIR
    from dotqr.geometry import DEFAULT_RESOLUTIONS

    parser = argparse.ArgumentParser(prog="dotqr", description="dotqr: dot-style QR codes with logo and caption")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Generate JPEG/PNG/SVG at every resolution")
    p_gen.add_argument("url", nargs="?", default=None, help="Short URL to encode and print as caption")
    p_gen.add_argument("--qr-id", default=None, help="Identifier used in output file names")
    p_gen.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    p_gen.add_argument("--resolutions", type=_parse_resolutions, default=DEFAULT_RESOLUTIONS,
                       help="Comma-separated output widths")
    p_gen.add_argument("--config", default=None, help="JSON request file; flags override its values")
    p_gen.add_argument("--verify", action="store_true", help="Scan the canonical raster after generating")
    _add_style_flags(p_gen)

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render one canonical PNG or SVG")
    p_render.add_argument("url", help="URL or data to encode")
    p_render.add_argument("-o", "--output", default="output/qr.png", help="Output file (.png or .svg)")
    p_render.add_argument("--no-caption", action="store_true", help="Omit the URL caption")
    _add_style_flags(p_render)

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "generate": cmd_generate,
        "render": cmd_render,
        "verify": cmd_verify,
    }
    commands[args.command](args)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
