"""
Presentational pieces of the sessions admin page.

`SessionActions` holds no state of its own: the page that renders it
supplies the create handler (a zero-argument callable) and the URL the
button points at.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from markupsafe import Markup, escape

CREATE_SESSION_LABEL = "Create Session"


@dataclass(frozen=True)
class SessionActions:
    on_create_session: Callable[[], Any]
    label: str = CREATE_SESSION_LABEL

    def click(self) -> Any:
        return self.on_create_session()

    def render(self, href: str = "#") -> Markup:
        return Markup(
            '<a class="btn btn-success" href="{href}" data-action="create-session">'
            '<span class="icon-plus" aria-hidden="true">+</span> {label}</a>'
        ).format(href=escape(href), label=escape(self.label))
