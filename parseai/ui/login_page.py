"""NiceGUI login and sign-up page."""

import logging

from nicegui import ui
from pydantic import ValidationError

from parseai.auth.firebase import AuthError, LoginForm, SignupForm, get_auth_client
from parseai.ui import state

logger = logging.getLogger(__name__)

_FIELD_MESSAGES = {
    "first_name": "First Name is required.",
    "email": "Invalid email address.",
}


def form_errors(error: ValidationError) -> dict[str, str]:
    """Map a form ValidationError to one message per field."""
    errors: dict[str, str] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else ""
        message = _FIELD_MESSAGES.get(field) or item["msg"].removeprefix("Value error, ")
        errors.setdefault(field, message)
    return errors


@ui.page("/login")
def login_page() -> None:
    """Tabs for signing in and creating an account."""
    ui.dark_mode(state.is_dark_theme())
    auth_client = get_auth_client()

    def show_errors(inputs: dict[str, ui.input], errors: dict[str, str]) -> None:
        for field, control in inputs.items():
            control.props(remove="error error-message")
            if field in errors:
                control.props["error"] = True
                control.props["error-message"] = errors[field]
            control.update()

    async def handle_login() -> None:
        fields = {"email": login_email, "password": login_password}
        try:
            form = LoginForm(email=login_email.value, password=login_password.value)
        except ValidationError as e:
            show_errors(fields, form_errors(e))
            return
        show_errors(fields, {})

        login_btn.props("loading")
        try:
            session = await auth_client.sign_in(form)
        except AuthError as e:
            ui.notify(f"Login Failed: {e.message}", type="negative")
            return
        finally:
            login_btn.props(remove="loading")

        state.remember_user(session)
        ui.notify("Login Successful. Welcome back! Redirecting...", type="positive")
        ui.navigate.to("/")

    async def handle_signup() -> None:
        fields = {"first_name": signup_name, "email": signup_email, "password": signup_password}
        try:
            form = SignupForm(
                first_name=signup_name.value,
                email=signup_email.value,
                password=signup_password.value,
            )
        except ValidationError as e:
            show_errors(fields, form_errors(e))
            return
        show_errors(fields, {})

        signup_btn.props("loading")
        try:
            session = await auth_client.sign_up(form)
        except AuthError as e:
            ui.notify(f"Signup Failed: {e.message}", type="negative")
            return
        finally:
            signup_btn.props(remove="loading")

        state.remember_user(session)
        ui.notify("Signup Successful. Welcome! Redirecting...", type="positive")
        ui.navigate.to("/")

    with ui.column().classes("w-full min-h-screen items-center justify-center p-4"):
        with ui.card().classes("w-full max-w-md"):
            heading = ui.label("Welcome Back").classes("text-xl font-semibold")
            caption = ui.label("Sign in to access your chat history.").classes("text-sm text-gray-500")

            def on_tab_change(e) -> None:
                if e.value in ("Login", login_tab):
                    heading.set_text("Welcome Back")
                    caption.set_text("Sign in to access your chat history.")
                else:
                    heading.set_text("Create an Account")
                    caption.set_text("Sign up to get full access to the chatbot.")

            with ui.tabs(on_change=on_tab_change).classes("w-full") as tabs:
                login_tab = ui.tab("Login")
                signup_tab = ui.tab("Sign Up")

            with ui.tab_panels(tabs, value=login_tab).classes("w-full"):
                with ui.tab_panel(login_tab).classes("gap-3"):
                    login_email = ui.input("Email", placeholder="m@example.com").classes("w-full")
                    login_password = ui.input("Password", password=True).classes("w-full")
                    login_btn = ui.button("Login", on_click=handle_login).classes("w-full")

                with ui.tab_panel(signup_tab).classes("gap-3"):
                    signup_name = ui.input("First Name", placeholder="John").classes("w-full")
                    signup_email = ui.input("Email", placeholder="m@example.com").classes("w-full")
                    signup_password = ui.input("Password", password=True).classes("w-full")
                    signup_btn = ui.button("Sign Up", on_click=handle_signup).classes("w-full")

            if not auth_client.enabled:
                ui.label("Sign-in is not configured on this server.").classes("text-sm text-negative")

            ui.link("Continue without an account", "/").classes("text-sm")
