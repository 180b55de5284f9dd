"""Command line interface that builds a message and writes it as ``.eml``."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from . import config
from .builder import MessageBuilder
from .datasource.excel import load_addresses
from .exceptions import EmailError
from .templating import TemplateRenderingError, apply_templates

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _read_template(template: str | None, template_file: Path | None) -> str:
    if template_file is not None:
        return template_file.read_text(encoding="utf-8")
    if template is None:
        raise ValueError("Template must be provided when no template file is specified")
    return template


def _parse_pairs(values: list[str] | None, separator: str, label: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition(separator)
        if not sep:
            raise ValueError(f"Invalid {label} '{raw}', expected KEY{separator}VALUE")
        pairs[key.strip()] = value.strip()
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build an email message and write it in RFC 5322 format."
    )
    parser.add_argument(
        "--host",
        default=config.SMTP_HOST,
        help="SMTP host the message is built for. Defaults to EMAILBUILDER_SMTP_HOST.",
    )
    parser.add_argument("--from", dest="sender", required=True, help="Email address of the sender.")
    parser.add_argument("--to", action="append", default=[], help="Recipient address (repeatable).")
    parser.add_argument(
        "--to-file",
        type=Path,
        help="Excel/CSV file with an 'email' column (and optional 'name') listing recipients.",
    )
    parser.add_argument("--sheet", help="Excel sheet name to read.")
    parser.add_argument("--cc", action="append", default=[], help="Cc address (repeatable).")
    parser.add_argument("--bcc", action="append", default=[], help="Bcc address (repeatable).")
    parser.add_argument("--reply-to", action="append", default=[], help="Reply-To address (repeatable).")
    parser.add_argument(
        "--header",
        action="append",
        help="Extra header as 'Name: Value' (repeatable).",
    )
    parser.add_argument(
        "--subject",
        default="",
        help="Template for the subject. Jinja2 placeholders are allowed.",
    )
    parser.add_argument("--body", help="Template for the body. Jinja2 placeholders are allowed.")
    parser.add_argument(
        "--body-file",
        type=Path,
        help="Path to a file containing the body template. Overrides --body when provided.",
    )
    parser.add_argument(
        "--var",
        action="append",
        help="Template variable as KEY=VALUE (repeatable).",
    )
    parser.add_argument(
        "--allow-missing",
        action="store_true",
        help="Render missing placeholders as empty strings instead of failing.",
    )
    parser.add_argument("--content-type", default=config.TEXT_PLAIN, help="Content type of the body.")
    parser.add_argument("--charset", default=config.DEFAULT_CHARSET, help="Charset of the body.")
    parser.add_argument("--sent-date", help="Sent date in ISO 8601 format. Defaults to now.")
    parser.add_argument("--output", type=Path, help="Write the message to this file instead of stdout.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser


def _configure_builder(args: argparse.Namespace) -> MessageBuilder:
    builder = MessageBuilder()
    builder.host_name = args.host
    builder.set_from(args.sender)
    if args.charset:
        builder.charset = args.charset

    if args.to:
        builder.add_to(args.to)
    if args.to_file is not None:
        for email, name in load_addresses(args.to_file, args.sheet):
            builder.add_to(email, name=name)
    if args.cc:
        builder.add_cc(args.cc)
    if args.bcc:
        builder.add_bcc(args.bcc)
    if args.reply_to:
        builder.add_reply_to(args.reply_to)

    headers = _parse_pairs(args.header, ":", "header")
    if headers:
        builder.set_headers(headers)

    if args.sent_date:
        builder.sent_date = datetime.fromisoformat(args.sent_date)

    body_template = _read_template(args.body, args.body_file)
    apply_templates(
        builder,
        args.subject,
        body_template,
        _parse_pairs(args.var, "=", "variable"),
        content_type=args.content_type,
        allow_missing=args.allow_missing,
    )
    return builder


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(levelname)s: %(message)s")

    try:
        builder = _configure_builder(args)
        message = builder.build()
    except TemplateRenderingError as exc:
        logging.error(
            "Failed to render %s: placeholder '%s' not found.", exc.template_type, exc.placeholder
        )
        raise SystemExit(1) from exc
    except (EmailError, ValueError, FileNotFoundError) as exc:
        logging.error(str(exc))
        raise SystemExit(1) from exc

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(message.as_bytes())
        logging.info("Message written to %s", args.output)
        return

    sys.stdout.write(message.as_string())
    sys.stdout.write("\n")


if __name__ == "__main__":  # pragma: no cover
    main()
