"""
Email rendering.

Every renderer returns ``(text, html)``. The plain text part is built with
fixed format strings; the HTML part comes from the Jinja2 templates next to
this module, with markdown bodies converted to HTML.
"""

import html as htmllib
from pathlib import Path
from typing import Optional

import markdown as markdownlib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .models import EventItem, ThreadItem

MESSAGE_TEXT = "{name} said:\n\n{body}\n\n"
EVENT_TEXT = "{from_name} invited you to:\n\n{name}\n\n{address}\n\n{time}\n\n{description}\n"
CANCELLATION_TEXT = "{from_name} has cancelled:\n\n{name}\n\n{address}\n\n{time}\n\n{message}"
DIGEST_TEXT = "You have notifications on Convo."
PREVIEW_LENGTH = 200


def render_markdown(text: str) -> Markup:
    """Render user markdown. Raw HTML in the input is escaped, not passed through."""
    return Markup(markdownlib.markdown(htmllib.escape(text, quote=False)))


_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)
_env.filters["markdown"] = render_markdown


def get_preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def _render(template: str, title: str, text: str, unsubscribe_link: str = "", **context) -> str:
    return _env.get_template(template).render(
        title=title,
        preview=get_preview(text),
        unsubscribe_link=unsubscribe_link,
        **context,
    )


def render_admin(
    body: str,
    button_text: str,
    magic_link: str,
    title: str = "Convo",
) -> tuple[str, str]:
    html = _render(
        "admin.html",
        title,
        body,
        body=body,
        button_text=button_text,
        magic_link=magic_link,
    )
    return body, html


def render_thread(thread: ThreadItem, unsubscribe_link: str = "") -> tuple[str, str]:
    text = "".join(MESSAGE_TEXT.format(name=m.name, body=m.body) for m in thread.messages)
    html = _render("thread.html", thread.subject, text, unsubscribe_link, thread=thread)
    return text, html


def render_event(event: EventItem, unsubscribe_link: str = "") -> tuple[str, str]:
    text = EVENT_TEXT.format(
        from_name=event.from_name,
        name=event.name,
        address=event.address,
        time=event.time,
        description=event.description,
    )
    html = _render("event.html", event.name, text, unsubscribe_link, event=event)
    return text, html


def render_cancellation(event: EventItem, unsubscribe_link: str = "") -> tuple[str, str]:
    text = CANCELLATION_TEXT.format(
        from_name=event.from_name,
        name=event.name,
        address=event.address,
        time=event.time,
        message=event.message,
    )
    html = _render("cancellation.html", event.name, text, unsubscribe_link, event=event)
    return text, html


def render_digest(
    items: list[ThreadItem],
    events: list[EventItem],
    unsubscribe_link: Optional[str] = "",
) -> tuple[str, str]:
    html = _render(
        "digest.html",
        "Digest",
        DIGEST_TEXT,
        unsubscribe_link or "",
        items=items,
        events=events,
    )
    return DIGEST_TEXT, html
