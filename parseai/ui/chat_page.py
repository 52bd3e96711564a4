"""NiceGUI chat interface: session sidebar, chat panel, uploads and settings."""

import asyncio
import html
import logging

from nicegui import background_tasks, events, ui

from parseai.agent.config import UnknownModelError
from parseai.models.chat import ChatSession, Message, MessageRole
from parseai.parsing.documents import ACCEPT_ATTRIBUTE, MAX_FILE_SIZE, DocumentParseError
from parseai.services.chat import ChatService, SessionNotFoundError
from parseai.ui import state
from parseai.ui.formatting import markdown_to_html, typewriter_steps, usage_fraction

logger = logging.getLogger(__name__)

TYPEWRITER_DELAY = 0.02

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    .chat-card {
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant { background: rgba(107, 114, 128, 0.12); border-radius: 18px 18px 18px 4px; }
    .message-system { font-style: italic; opacity: 0.75; border-radius: 12px; }

    .avatar-user { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }
    .avatar-assistant { background: #6b7280; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #667eea;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .code-lang {
        background: #111827; color: #9ca3af;
        font-size: 10px; padding: 2px 12px;
        border-radius: 8px 8px 0 0;
    }
    .message-assistant pre { margin: 0; }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
    .session-active { background: rgba(102, 126, 234, 0.15); }
</style>
"""


def confirm(title: str, text: str, action_label: str, on_confirm) -> None:
    """Open an "Are you sure?" dialog that runs ``on_confirm`` when accepted."""
    with ui.dialog() as dialog, ui.card().classes("min-w-[320px]"):
        ui.label(title).classes("text-lg font-semibold")
        ui.label(text).classes("text-sm text-gray-500")
        with ui.row().classes("w-full justify-end gap-2"):
            ui.button("Cancel", on_click=dialog.close).props("flat")

            async def accept() -> None:
                dialog.close()
                result = on_confirm()
                if asyncio.iscoroutine(result):
                    await result

            ui.button(action_label, on_click=accept).props("color=negative")
    dialog.open()


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    dark = ui.dark_mode(state.is_dark_theme())
    service: ChatService = state.build_chat_service()
    service.load()
    view = state.ViewState()

    input_field: ui.input
    send_btn: ui.button
    upload_btn: ui.button
    uploader: ui.upload

    def active() -> ChatSession:
        return service.active_session()

    # === Rendering ===

    def render_avatar(role: MessageRole) -> None:
        if role == MessageRole.USER:
            css, icon = "avatar-user", "person"
        elif role == MessageRole.ASSISTANT:
            css, icon = "avatar-assistant", "smart_toy"
        else:
            css, icon = "avatar-assistant", "description"
        with ui.element("div").classes(f"w-8 h-8 rounded-full flex items-center justify-center {css}"):
            ui.icon(icon).classes("text-white text-base")

    def render_message(msg: Message) -> ui.html:
        is_user = msg.role == MessageRole.USER
        bubble = {
            MessageRole.USER: "message-user",
            MessageRole.ASSISTANT: "message-assistant",
            MessageRole.SYSTEM: "message-system text-sm",
        }[msg.role]

        with ui.row().classes(f"w-full {'justify-end' if is_user else 'justify-start'} gap-3 items-start no-wrap"):
            if not is_user:
                render_avatar(msg.role)
            with ui.element("div").classes(f"px-4 py-2 max-w-[80%] {bubble}"):
                # Markdown for assistant and notices, plain text for the user
                if is_user:
                    content = html.escape(msg.content).replace("\n", "<br>")
                else:
                    content = markdown_to_html(msg.content)
                body = ui.html(content, sanitize=False).classes("text-sm leading-relaxed")
            if is_user:
                render_avatar(msg.role)
        return body

    def render_loading() -> None:
        with ui.row().classes("w-full justify-start gap-3 items-center"):
            render_avatar(MessageRole.ASSISTANT)
            with ui.element("div").classes("message-assistant px-4 py-3"), ui.row().classes("items-center gap-2"):
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")
                ui.label(view.loading_message).classes("text-sm italic text-gray-500")

    @ui.refreshable
    def session_list() -> None:
        loaded = service.load()
        for session in loaded.sessions:
            is_active = session.id == loaded.active_session_id
            with ui.row().classes(
                f"w-full items-center no-wrap rounded px-1 {'session-active' if is_active else ''}"
            ):
                ui.button(
                    session.title,
                    on_click=lambda s=session: select_session(s.id),
                ).props("flat no-caps align=left").classes("flex-grow truncate text-left")
                ui.button(
                    icon="delete",
                    on_click=lambda s=session: confirm(
                        "Are you sure?",
                        "This will permanently delete this chat session.",
                        "Delete",
                        lambda: delete_session(s.id),
                    ),
                ).props("flat round dense size=sm")

    @ui.refreshable
    def document_chip() -> None:
        document = active().document
        if document is None:
            return
        with ui.row().classes("w-full items-center justify-between px-3 py-2 rounded message-assistant"):
            with ui.row().classes("items-center gap-2"):
                ui.icon("image" if document.is_image else "description").classes("text-primary")
                ui.label(document.name).classes("text-sm font-medium")
            ui.button(icon="close", on_click=remove_document).props("flat round dense size=sm")

    @ui.refreshable
    def message_list() -> None:
        view.cancel_reveal()
        session = active()
        reveal: tuple[ui.html, str] | None = None
        for msg in session.messages:
            body = render_message(msg)
            if msg.id == view.reveal_message_id:
                reveal = (body, msg.content)
        if view.pending_question:
            render_message(Message(role=MessageRole.USER, content=view.pending_question))
        if view.is_loading:
            render_loading()
        if reveal is not None:
            view.reveal_message_id = None
            view.track_reveal(background_tasks.create(typewrite(*reveal), name="typewriter"))

    async def typewrite(body: ui.html, text: str) -> None:
        for partial in typewriter_steps(text):
            body.set_content(markdown_to_html(partial))
            scroll.scroll_to(percent=1.0)
            await asyncio.sleep(TYPEWRITER_DELAY)

    def refresh_all() -> None:
        session_list.refresh()
        document_chip.refresh()
        message_list.refresh()
        document = active().document
        input_field.props["placeholder"] = f"Ask about {document.name}..." if document else "Ask a question..."
        input_field.update()
        for control in (input_field, send_btn, upload_btn):
            control.set_enabled(not view.is_loading)
        scroll.scroll_to(percent=1.0)

    # === Actions ===

    def new_chat() -> None:
        service.create_session()
        refresh_all()

    def select_session(session_id: str) -> None:
        try:
            service.select_session(session_id)
        except SessionNotFoundError as e:
            ui.notify(str(e), type="negative")
        refresh_all()

    def delete_session(session_id: str) -> None:
        try:
            service.delete_session(session_id)
        except SessionNotFoundError as e:
            ui.notify(str(e), type="negative")
        refresh_all()

    def clear_chat() -> None:
        service.clear_session(active().id)
        refresh_all()

    def remove_document() -> None:
        service.remove_document(active().id)
        refresh_all()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        uploader.reset()
        session_id = active().id
        view.start("Parsing document...")
        refresh_all()
        try:
            content = await e.file.read()
            await service.attach_document(session_id, e.file.name, content)
        except DocumentParseError as error:
            logger.warning(f"Upload of {e.file.name} failed: {error}")
            ui.notify(f"Parsing Failed: {error}", type="negative")
        except SessionNotFoundError as error:
            ui.notify(str(error), type="negative")
        except OSError as error:
            logger.error(f"File reading failed: {error}")
            ui.notify("There was an error reading your file.", type="negative")
        finally:
            view.stop()
            refresh_all()

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or view.is_loading:
            return

        session_id = active().id
        input_field.value = ""
        view.pending_question = text
        view.start("Thinking...")
        refresh_all()

        try:
            session = await service.ask(session_id, text)
            view.reveal_message_id = session.messages[-1].id
        except (SessionNotFoundError, UnknownModelError) as error:
            ui.notify(str(error), type="negative")
        finally:
            view.stop()
            refresh_all()

    # === Settings ===

    @ui.refreshable
    def model_settings() -> None:
        selected = service.current_model().id
        models = service.model_usage()
        ui.select(
            {m.id: m.label for m in models},
            value=selected,
            label="Model",
            on_change=lambda e: choose_model(e.value),
        ).classes("w-full")
        for info in models:
            with ui.row().classes("w-full items-center gap-3 no-wrap"):
                ui.circular_progress(
                    value=usage_fraction(info.used, info.daily_limit),
                    min=0,
                    max=1,
                    show_value=False,
                    size="md",
                )
                limit = "unlimited" if info.daily_limit is None else f"{info.used} / {info.daily_limit} today"
                ui.label(f"{info.label}: {limit}").classes("text-sm")

    def choose_model(model_id: str) -> None:
        try:
            service.select_model(model_id)
        except UnknownModelError as error:
            ui.notify(str(error), type="negative")
        model_settings.refresh()

    def toggle_theme(value: bool) -> None:
        dark.set_value(value)
        state.save_theme(value)

    def sign_out() -> None:
        state.forget_user()
        ui.navigate.to("/")

    with ui.dialog() as settings_dialog, ui.card().classes("min-w-[360px] gap-4"):
        ui.label("Settings").classes("text-lg font-semibold")
        model_settings()
        ui.switch("Dark mode", value=state.is_dark_theme(), on_change=lambda e: toggle_theme(e.value))
        ui.button(
            "Clear Chat",
            icon="delete_sweep",
            on_click=lambda: confirm(
                "Are you sure?",
                "This will clear all messages in this chat. This action cannot be undone.",
                "Clear",
                clear_chat,
            ),
        ).props("flat color=negative")
        ui.separator()
        user = state.current_user()
        ui.label(state.account_summary(user)).classes("text-sm text-gray-500")
        if user:
            ui.button("Sign out", icon="logout", on_click=sign_out).props("flat no-caps")
        else:
            ui.button("Sign in", icon="login", on_click=lambda: ui.navigate.to("/login")).props("flat no-caps")
        with ui.row().classes("w-full justify-end"):
            ui.button("Close", on_click=settings_dialog.close).props("flat")

    def open_settings() -> None:
        model_settings.refresh()
        settings_dialog.open()

    # === UI Layout ===

    with ui.left_drawer(value=True).classes("p-3 gap-2"):
        ui.button("New Chat", icon="add_comment", on_click=new_chat).props("flat no-caps").classes("w-full")
        ui.separator()
        session_list()

    with ui.column().classes("w-full max-w-3xl mx-auto chat-card").style("height: calc(100vh - 2rem)"):
        with ui.row().classes("w-full px-5 py-3 items-center justify-between"):
            with ui.row().classes("items-center gap-2"):
                ui.icon("smart_toy").classes("text-primary text-3xl")
                ui.label("ParseAI").classes("text-2xl font-bold")
            ui.button(icon="settings", on_click=open_settings).props("flat round")

        with ui.column().classes("w-full px-5"):
            document_chip()

        with ui.scroll_area().classes("flex-grow w-full") as scroll, ui.column().classes("w-full px-5 gap-4"):
            message_list()

        with ui.row().classes("w-full p-4 gap-2 items-center no-wrap"):
            uploader = (
                ui.upload(on_upload=handle_upload, auto_upload=True, max_file_size=MAX_FILE_SIZE)
                .props(f'accept="{ACCEPT_ATTRIBUTE}"')
                .classes("hidden")
            )
            uploader.on("rejected", lambda: ui.notify("File exceeds maximum allowed (10MB)", type="negative"))
            upload_btn = ui.button(
                icon="attach_file", on_click=lambda: uploader.run_method("pickFiles")
            ).props("outline round").tooltip("Upload document")
            input_field = (
                ui.input(placeholder="Ask a question...")
                .props("outlined dense autocomplete=off")
                .classes("flex-grow")
                .on("keydown.enter", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    refresh_all()
