"""Email body rendering with Jinja2."""

from dataclasses import dataclass

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape


@dataclass(frozen=True)
class RenderedMessage:
    html: str
    text: str


class TemplateRenderer:
    """
    Renders the HTML and plain-text bodies of outgoing messages.

    Built once at application startup and handed to the services that need
    it; templates live in ``newsletter/templates``.
    """

    def __init__(self, package: str = "newsletter", directory: str = "templates"):
        self.env = Environment(
            loader=PackageLoader(package, directory),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    def _render(self, name: str, **context: str) -> RenderedMessage:
        return RenderedMessage(
            html=self.env.get_template(f"{name}.html").render(**context),
            text=self.env.get_template(f"{name}.txt").render(**context),
        )

    def render_subscription_confirmation(self, confirmation_link: str) -> RenderedMessage:
        return self._render("subscription_confirmation", confirmation_link=confirmation_link)

    def render_collaborator_invitation(self, invitation_link: str) -> RenderedMessage:
        return self._render("collaborator_invitation", invitation_link=invitation_link)
