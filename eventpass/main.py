from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .config import AppConfig
from .logger import setup_logging
from .pending_queue import retry_pending
from .pipeline import generate_pass, generate_passes, pass_filename, write_artifacts
from .qr_tools import display_qr_response, scan_pass_code
from .registrations import export_template_csv, load_registrations_csv


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="eventpass", description="Event pass generator")
    p.add_argument("--config", type=Path, default=None, help="path to config.json")
    p.add_argument("--debug", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("render", help="render passes for every row of a registrations CSV")
    r.add_argument("csv", type=Path)
    r.add_argument("--out", type=Path, default=None)
    r.add_argument("--svg", action="store_true", help="also write an SVG preview of each pass")

    t = sub.add_parser("template", help="write an empty registrations CSV")
    t.add_argument("path", type=Path)

    q = sub.add_parser("qr", help="write the display QR image for a code")
    q.add_argument("code")
    q.add_argument("--out", type=Path, default=None)

    sub.add_parser("retry", help="regenerate passes that previously failed")

    s = sub.add_parser("scan", help="decode the pass code from an image")
    s.add_argument("image", type=Path)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = AppConfig(args.config)
    log = setup_logging(cfg.debug or args.debug, log_dir=Path(cfg.log_folder),
                        level=cfg.log_level, filename=cfg.log_file)
    template = cfg.template()
    out_dir = Path(getattr(args, "out", None) or cfg.output_folder)

    if args.command == "render":
        inputs = load_registrations_csv(args.csv, cfg.max_code_attempts)
        count = generate_passes(inputs, out_dir, template=template, logo_url=cfg.logo_url,
                                logo_timeout=cfg.logo_timeout, page_mm=cfg.document_size_mm,
                                svg=args.svg)
        log.info("Rendered %d of %d passes into %s", count, len(inputs), out_dir)
        return 0 if count == len(inputs) else 1

    if args.command == "template":
        export_template_csv(args.path)
        return 0

    if args.command == "qr":
        code = args.code.strip().upper()
        if args.out is None:
            out_dir.mkdir(parents=True, exist_ok=True)
            target = out_dir / f"qr-{code}.png"
        else:
            target = args.out
        body, headers = display_qr_response(code, cfg.qr_display_size, cfg.qr_margin)
        target.write_bytes(body)
        log.info("Wrote %s (%s)", target, headers["Content-Type"])
        log.debug("Serve with Cache-Control: %s", headers["Cache-Control"])
        return 0

    if args.command == "retry":
        def _regenerate(item):
            artifacts = generate_pass(item, template=template, logo_url=cfg.logo_url,
                                      logo_timeout=cfg.logo_timeout, page_mm=cfg.document_size_mm)
            write_artifacts(artifacts, out_dir)
            log.info("Regenerated %s", pass_filename(item.unique_code, "pdf"))
        result = retry_pending(_regenerate)
        log.info("Retry finished: %(done)d done, %(remaining)d still pending", result)
        return 0 if result["remaining"] == 0 else 1

    if args.command == "scan":
        with Image.open(args.image) as img:
            code = scan_pass_code(img)
        if code is None:
            log.warning("No pass code found in %s", args.image)
            return 1
        print(code)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
