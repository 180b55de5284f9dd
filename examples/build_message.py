"""Build an example message without sending it and print it to stdout."""

from __future__ import annotations

from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from emailbuilder import MessageBuilder
from emailbuilder.templating import render


def main() -> None:
    subject, body_html = render(
        "Your report for {{ today|datefmt('%d/%m/%Y') }}",
        "<p>Hello {{ name }},</p><p>the report is attached.</p>",
        {"name": "Ana"},
    )

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText("Hello Ana, the report is attached.", "plain", "utf-8"))
    alternative.attach(MIMEText(body_html, "html", "utf-8"))

    builder = MessageBuilder()
    builder.host_name = "localhost"
    builder.set_from("reports@example.com", name="Reports")
    builder.add_to("ana@example.com", name="Ana")
    builder.add_bcc(["audit@example.com", "archive@example.com"])
    builder.add_header("X-Report-Run", datetime.now().strftime("%Y%m%d"))
    builder.subject = subject
    builder.set_content(alternative)

    message = builder.build()
    print(message.as_string())


if __name__ == "__main__":
    main()
