"""NiceGUI chat interface rendering the conversation store."""

import logging

from nicegui import events, ui

from rare_assistant.auth.provider import AppwriteCredentialProvider, AuthUnavailable
from rare_assistant.auth.token_cache import get_token_cache
from rare_assistant.chat.session import SessionController
from rare_assistant.chat.store import ConversationStore
from rare_assistant.chat.turn import FailureReason, TurnPhase
from rare_assistant.config import get_client_config
from rare_assistant.models.schemas import Message, Role, SourceRef, UploadStatus
from rare_assistant.upload.client import UploadTracker

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<style>
    body { background: #0f172a; }
    .app-container { background: rgba(255, 255, 255, 0.04); border-radius: 16px; }
    .message-user { background: #6366f1; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant {
        background: rgba(255, 255, 255, 0.08);
        color: #f1f5f9;
        border-radius: 18px 18px 18px 4px;
    }
    .thinking-step { color: #94a3b8; font-style: italic; }
    .typing-dot {
        width: 8px; height: 8px; background: #a5b4fc; border-radius: 50%;
        animation: pulse 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes pulse { 0%, 100% { opacity: 0.3; } 50% { opacity: 1; } }
</style>
"""

UPLOAD_STATUS_COLORS = {
    UploadStatus.COMPLETED: "text-green-400",
    UploadStatus.FAILED: "text-red-400",
}


def format_source(source: SourceRef) -> str:
    """Format a citation as a one-line label."""
    label = source.source_type.value.replace("_", " ")
    return f"{label} · {source.source_id} · {source.relevance:.0%} match"


def render_thinking(steps: tuple[str, ...]) -> None:
    with ui.column().classes("gap-1 px-2"):
        for step in steps:
            ui.label(step).classes("thinking-step text-sm")


def render_sources(sources: tuple[SourceRef, ...]) -> None:
    with ui.column().classes("gap-0 mt-2 pt-2 border-t border-white/10"):
        ui.label("Sources").classes("text-xs text-white/60")
        for source in sources:
            ui.label(format_source(source)).classes("text-xs text-white/70")


def render_message(message: Message, pending: bool) -> None:
    """Render one message bubble. Never mutates the message."""
    is_user = message.role is Role.USER
    align = "justify-end" if is_user else "justify-start"

    if not is_user and message.thinking_steps:
        render_thinking(message.thinking_steps)

    with ui.row().classes(f"w-full {align}"):
        bubble = "message-user" if is_user else "message-assistant"
        with ui.column().classes(f"max-w-[80%] px-5 py-3 gap-1 {bubble}"):
            if is_user:
                ui.label(message.content).classes("whitespace-pre-wrap")
            else:
                ui.label("AI Assistant").classes("text-xs text-white/60")
                if message.content:
                    ui.markdown(message.content)
                elif pending:
                    with ui.row().classes("gap-1 py-2"):
                        for _ in range(3):
                            ui.element("div").classes("typing-dot")
                if message.sources:
                    render_sources(message.sources)
            ui.label(message.created_at.strftime("%I:%M %p")).classes("text-[10px] text-white/40")


@ui.page("/")
def chat_page() -> None:
    """Main chat page. Each browser client gets its own conversation."""
    ui.add_head_html(CUSTOM_CSS)
    config = get_client_config()
    token_cache = get_token_cache()
    store = ConversationStore()
    controller = SessionController(store, token_cache, config)
    uploads = UploadTracker(token_cache, config)

    async def teardown() -> None:
        await controller.aclose()
        await uploads.aclose()

    ui.context.client.on_disconnect(teardown)

    @ui.refreshable
    def messages_view() -> None:
        if not store.messages:
            with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                ui.label("Rare Disease Assistant").classes("text-2xl font-semibold text-white")
                ui.label(
                    "Describe patient symptoms or clinical observations to receive "
                    "AI-assisted rare disease analysis."
                ).classes("max-w-md text-center text-white/70")
            return

        active = store.active_turn
        pending_id = active.assistant_message_id if active is not None else None
        for message in store.messages:
            render_message(message, pending=message.id == pending_id)

    @ui.refreshable
    def uploads_view() -> None:
        for entry in uploads.files:
            color = UPLOAD_STATUS_COLORS.get(entry.status, "text-blue-400")
            with ui.row().classes("w-full items-center gap-2 px-2 text-xs"):
                ui.label(entry.name).classes("flex-grow text-white/80 truncate")
                ui.label(entry.error or entry.status.value).classes(color)
                ui.button(icon="close", on_click=lambda e=entry: uploads.remove(e.id)).props(
                    "flat round dense size=xs color=white"
                )

    store.subscribe(lambda _: messages_view.refresh())
    uploads.subscribe(uploads_view.refresh)

    async def send_message() -> None:
        task = controller.submit_turn(input_field.value or "")
        if task is None:
            return
        turn_id = store.active_turn.id
        input_field.value = ""
        send_btn.disable()
        try:
            await task
        finally:
            send_btn.enable()

        turn = store.find_turn(turn_id)
        if turn is None:
            return
        if turn.failure is FailureReason.AUTH_UNAVAILABLE:
            ui.notify("Your session has expired. Please log in again.", type="negative")
            ui.navigate.to("/signin")
        elif turn.phase is TurnPhase.FAILED:
            ui.notify(turn.error_message or "Request failed", type="warning")

    async def handle_upload(e: events.UploadEventArguments) -> None:
        await uploads.upload(e.name, e.content.read())

    def new_chat() -> None:
        if controller.is_busy or not store.clear():
            ui.notify("Wait for the current answer to finish", type="info")

    with ui.column().classes("w-full max-w-5xl mx-auto p-4 gap-4 app-container").style(
        "height: calc(100vh - 2rem)"
    ):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("Rare Disease Assistant").classes("text-lg font-semibold text-white")
            ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        with ui.scroll_area().classes("flex-grow w-full"):
            messages_view()

        uploads_view()

        with ui.row().classes("w-full items-end gap-3"):
            ui.upload(on_upload=handle_upload, multiple=True, auto_upload=True).props(
                "accept=.pdf,.jpg,.jpeg,.png flat dense color=white"
            ).classes("w-48")
            input_field = (
                ui.textarea(placeholder="Describe patient symptoms or clinical observations...")
                .props("autogrow dark dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")


@ui.page("/signin")
def signin_page() -> None:
    """Email/password sign-in and sign-up against Appwrite."""
    ui.add_head_html(CUSTOM_CSS)
    token_cache = get_token_cache()
    provider = token_cache.provider

    async def sign_in() -> None:
        if not isinstance(provider, AppwriteCredentialProvider):
            ui.notify("Sign-in is not available", type="negative")
            return
        try:
            await provider.login(email.value, password.value)
        except AuthUnavailable as e:
            ui.notify(str(e), type="negative")
            return
        token_cache.clear()
        ui.navigate.to("/")

    async def sign_up() -> None:
        if not isinstance(provider, AppwriteCredentialProvider):
            ui.notify("Sign-up is not available", type="negative")
            return
        try:
            await provider.signup(email.value, password.value, name.value)
        except AuthUnavailable as e:
            ui.notify(str(e), type="negative")
            return
        token_cache.clear()
        ui.navigate.to("/")

    async def sign_out() -> None:
        if isinstance(provider, AppwriteCredentialProvider):
            await provider.logout()
        token_cache.clear()
        ui.notify("Signed out")

    with ui.card().classes("w-96 mx-auto mt-24 gap-3"):
        ui.label("Sign in").classes("text-xl font-semibold")
        name = ui.input("Name (for new accounts)").classes("w-full")
        email = ui.input("Email").classes("w-full")
        password = ui.input("Password", password=True, password_toggle_button=True).classes(
            "w-full"
        )
        with ui.row().classes("w-full justify-between"):
            ui.button("Sign in", on_click=sign_in)
            ui.button("Create account", on_click=sign_up).props("outline")
            ui.button("Sign out", on_click=sign_out).props("flat")
