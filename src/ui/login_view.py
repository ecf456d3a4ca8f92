# src/ui/login_view.py

"""Sign-in / sign-up form widget."""

import logging

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Input, Select, Static

from src.backend.base_backend import BaseBackend
from src.services.credential_form import (
    AuthMode,
    CredentialForm,
    market_options,
)
from src.ui.widgets import select_value, show_notice

logger = logging.getLogger("price_tracker.ui.login")

# Inputs only shown while signing up
_SIGN_UP_ONLY = ("#user_id_input", "#name_input", "#market_select")


class LoginView(Container):
    """Collects credentials and hands them to :class:`CredentialForm`."""

    def __init__(self, backend: BaseBackend, **kwargs: str) -> None:
        super().__init__(**kwargs)
        self.form = CredentialForm(backend)

    def compose(self) -> ComposeResult:
        with Vertical(id="login_card"):
            yield Static("Welcome Back", id="login_title")
            yield Static(
                "Please sign in to your account", id="login_subtitle",
            )
            yield Input(placeholder="Enter your ID", id="user_id_input")
            yield Input(
                placeholder="Enter your full name", id="name_input",
            )
            yield Input(placeholder="Enter your email", id="email_input")
            yield Select(
                market_options(),
                prompt="Select your market sector",
                id="market_select",
            )
            with Horizontal(id="password_row"):
                yield Input(
                    placeholder="Enter your password",
                    password=True,
                    id="password_input",
                )
                yield Button("Show", id="toggle_password_btn")
            yield Button("Sign In", variant="primary", id="submit_btn")
            yield Button(
                "Don't have an account? Sign up here",
                id="toggle_mode_btn",
            )

    def on_mount(self) -> None:
        self._apply_mode()

    def _apply_mode(self) -> None:
        """Show the fields and labels for the current mode."""
        sign_up = self.form.mode is AuthMode.SIGN_UP
        for selector in _SIGN_UP_ONLY:
            self.query_one(selector).display = sign_up

        self.query_one("#login_title", Static).update(
            "Create Account" if sign_up else "Welcome Back"
        )
        self.query_one("#login_subtitle", Static).update(
            "Fill in your details to sign up" if sign_up
            else "Please sign in to your account"
        )
        self.query_one("#submit_btn", Button).label = (
            "Sign Up" if sign_up else "Sign In"
        )
        self.query_one("#toggle_mode_btn", Button).label = (
            "Already have an account? Sign in" if sign_up
            else "Don't have an account? Sign up here"
        )

    def _sync_draft(self) -> None:
        """Copy widget values into the form draft."""
        draft = self.form.draft
        draft.user_id = self.query_one("#user_id_input", Input).value
        draft.name = self.query_one("#name_input", Input).value
        draft.email = self.query_one("#email_input", Input).value
        draft.market = select_value(
            self.query_one("#market_select", Select)
        )
        draft.password = self.query_one("#password_input", Input).value

    @on(Button.Pressed, "#toggle_mode_btn")
    def toggle_mode(self) -> None:
        """Switch between sign-in and sign-up."""
        self.form.toggle_mode()
        self._apply_mode()

    @on(Button.Pressed, "#toggle_password_btn")
    def toggle_password(self) -> None:
        """Mask or reveal the password."""
        visible = self.form.toggle_password()
        self.query_one("#password_input", Input).password = not visible
        self.query_one("#toggle_password_btn", Button).label = (
            "Hide" if visible else "Show"
        )

    @on(Button.Pressed, "#submit_btn")
    @on(Input.Submitted)
    async def submit(self) -> None:
        """Send the credentials; the submit button is off meanwhile."""
        if self.form.in_flight:
            show_notice(self.app, await self.form.submit())
            return
        self._sync_draft()
        button = self.query_one("#submit_btn", Button)
        button.disabled = True
        button.label = (
            "Creating Account..." if self.form.mode is AuthMode.SIGN_UP
            else "Signing In..."
        )
        try:
            notice = await self.form.submit()
        finally:
            button.disabled = False
            self._apply_mode()

        show_notice(self.app, notice)
        if not notice.is_error:
            self.query_one("#password_input", Input).value = ""
