from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.error import BadRequest
from telegram.ext import (
    CallbackContext,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    filters,
)

from contextual_calendar.birthday_store import BirthdayStore, OutOfRangeError, PersistenceError
from contextual_calendar.calendar_view import (
    CALLBACK_PREFIX,
    build_list_rows,
    month_title,
    parse_callback_data,
    render_birthday_list,
    render_day_detail,
    render_month_keyboard,
    render_week_keyboard,
)
from contextual_calendar.config_store import load_config
from contextual_calendar.date_logic import parse_birthday_text
from contextual_calendar.models import BirthdayRecord, CalendarConfig
from contextual_calendar.settings import Settings

LOGGER = logging.getLogger(__name__)

(
    STATE_ADD_NAME,
    STATE_ADD_DATE,
    STATE_ADD_NOTES,
    STATE_ADD_CONFIRM,
    STATE_DELETE_SELECT,
    STATE_DELETE_CONFIRM,
) = range(6)

PENDING_ADD_KEY = "pending_add_birthday"
PENDING_DELETE_KEY = "pending_delete_birthday"

NOT_SAVED_WARNING = "Warning: it could not be saved and may not survive a restart."


@dataclass(frozen=True)
class HandlerDependencies:
    settings: Settings
    store: BirthdayStore


def is_authorized(update: Update, settings: Settings) -> bool:
    effective_user = update.effective_user
    effective_chat = update.effective_chat
    if effective_user is None or effective_chat is None:
        return False
    return (
        effective_user.id == settings.telegram_allowed_user_id
        and effective_chat.id == settings.telegram_allowed_chat_id
    )


async def _deny_unauthorized(update: Update) -> None:
    if update.callback_query:
        await update.callback_query.answer("This calendar is restricted to its configured owner.")
        return
    if update.effective_message:
        await update.effective_message.reply_text("This calendar is restricted to its configured owner.")


def _deps(context: CallbackContext) -> HandlerDependencies:
    return context.application.bot_data["handler_deps"]


def _config_and_today(settings: Settings) -> tuple[CalendarConfig, date]:
    config = load_config(settings.calendar_config_path)
    today = datetime.now(ZoneInfo(config.timezone)).date()
    return config, today


def parse_notes_text(raw_text: str) -> str:
    text = raw_text.strip()
    if text.lower() in {"skip", "none", "-"}:
        return ""
    return text


def _is_yes_no(decision: str) -> bool:
    return decision in {"yes", "y", "no", "n"}


def _render_help() -> str:
    return (
        "Commands:\n"
        "/calendar - Show this month (🎂 marks a birthday, [n] is today)\n"
        "/week - Show the current week\n"
        "/today - Show today's birthdays\n"
        "/list - Show all birthdays, soonest first\n"
        "/add - Record a birthday\n"
        "/delete - Remove a birthday\n"
        "/help - Show this help message\n"
        "/cancel - Cancel the active add/delete wizard\n\n"
        "Tap a day in the calendar to see who was born on it."
    )


def _render_delete_selection(records: list[BirthdayRecord]) -> str:
    lines = [
        "Delete birthday wizard started.",
        "Step 1/2: Reply with the number of the entry to delete:",
    ]
    for index, record in enumerate(records, start=1):
        lines.append(f"{index}. {record.name} | {record.date.isoformat()}")
    return "\n".join(lines)


async def help_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return
    await update.effective_message.reply_text(_render_help())


async def calendar_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    config, today = _config_and_today(deps.settings)
    await update.effective_message.reply_text(
        month_title(today),
        reply_markup=render_month_keyboard(today, today, deps.store, config.first_weekday),
    )


async def week_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    config, today = _config_and_today(deps.settings)
    await update.effective_message.reply_text(
        "This week",
        reply_markup=render_week_keyboard(today, today, deps.store, config.first_weekday),
    )


async def today_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    _config, today = _config_and_today(deps.settings)
    await update.effective_message.reply_text(render_day_detail(today, deps.store.birthdays_on(today)))


async def list_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    records = deps.store.all_birthdays
    if not records:
        await update.effective_message.reply_text("No birthdays are currently tracked.")
        return

    config, today = _config_and_today(deps.settings)
    rows = build_list_rows(records, today, config.leap_day_rule)
    await update.effective_message.reply_text(render_birthday_list(rows))


async def calendar_callback(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    query = update.callback_query
    try:
        action, day = parse_callback_data(query.data or "")
    except ValueError:
        LOGGER.warning("Ignoring calendar callback with data %r", query.data)
        await query.answer()
        return

    await query.answer()
    if action == "noop" or day is None:
        return

    if action == "day":
        await query.message.reply_text(render_day_detail(day, deps.store.birthdays_on(day)))
        return

    config, today = _config_and_today(deps.settings)
    try:
        if action == "month":
            await query.edit_message_text(
                month_title(day),
                reply_markup=render_month_keyboard(day, today, deps.store, config.first_weekday),
            )
        else:
            await query.edit_message_reply_markup(
                reply_markup=render_week_keyboard(day, today, deps.store, config.first_weekday),
            )
    except BadRequest as exc:
        # "Today" pressed while already showing today's page
        if "not modified" not in str(exc).lower():
            raise


async def add_start(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    context.user_data[PENDING_ADD_KEY] = {}
    await update.effective_message.reply_text(
        "Add birthday wizard started.\nStep 1/4: Send the person's name."
    )
    return STATE_ADD_NAME


async def add_name(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    name = (update.effective_message.text or "").strip()
    if not name:
        await update.effective_message.reply_text("Name cannot be empty. Please send a name.")
        return STATE_ADD_NAME

    context.user_data[PENDING_ADD_KEY] = {"name": name}
    await update.effective_message.reply_text("Step 2/4: Send the birth date as YYYY-MM-DD.")
    return STATE_ADD_DATE


async def add_date(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    try:
        birth_date = parse_birthday_text(update.effective_message.text or "")
    except ValueError as exc:
        await update.effective_message.reply_text(f"{exc}. Please send YYYY-MM-DD.")
        return STATE_ADD_DATE

    pending = context.user_data.get(PENDING_ADD_KEY, {})
    pending["date"] = birth_date.isoformat()
    context.user_data[PENDING_ADD_KEY] = pending

    await update.effective_message.reply_text("Step 3/4: Send any notes, or skip for none.")
    return STATE_ADD_NOTES


async def add_notes(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    pending = context.user_data.get(PENDING_ADD_KEY, {})
    pending["notes"] = parse_notes_text(update.effective_message.text or "")
    context.user_data[PENDING_ADD_KEY] = pending

    notes_text = pending["notes"] or "(none)"
    summary = (
        "Step 4/4: Confirm this entry:\n"
        f"Name: {pending.get('name')}\n"
        f"Birthday: {pending.get('date')}\n"
        f"Notes: {notes_text}\n\n"
        "Reply with yes to save, or no to cancel."
    )
    await update.effective_message.reply_text(summary)
    return STATE_ADD_CONFIRM


async def add_confirm(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    decision = (update.effective_message.text or "").strip().lower()
    if not _is_yes_no(decision):
        await update.effective_message.reply_text("Please reply with yes or no.")
        return STATE_ADD_CONFIRM

    pending = context.user_data.pop(PENDING_ADD_KEY, {})
    if decision in {"no", "n"}:
        await update.effective_message.reply_text("Canceled. No changes were made.")
        return ConversationHandler.END

    record = BirthdayRecord.create(
        name=str(pending["name"]),
        birth_date=date.fromisoformat(str(pending["date"])),
        notes=str(pending.get("notes", "")),
    )
    try:
        deps.store.add(record)
    except PersistenceError:
        await update.effective_message.reply_text(f"Birthday added. {NOT_SAVED_WARNING}")
        return ConversationHandler.END

    await update.effective_message.reply_text("Birthday saved.")
    LOGGER.info("Added birthday for %s", record.name)
    return ConversationHandler.END


async def delete_start(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    records = deps.store.all_birthdays
    if not records:
        await update.effective_message.reply_text("No birthdays are currently tracked.")
        return ConversationHandler.END

    context.user_data[PENDING_DELETE_KEY] = {}
    await update.effective_message.reply_text(_render_delete_selection(records))
    return STATE_DELETE_SELECT


async def delete_select(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    raw_text = (update.effective_message.text or "").strip()
    if not raw_text.isdigit():
        await update.effective_message.reply_text("Please send the entry number shown in the list.")
        return STATE_DELETE_SELECT

    selected = int(raw_text)
    records = deps.store.all_birthdays
    if selected < 1 or selected > len(records):
        await update.effective_message.reply_text(f"Entry must be between 1 and {len(records)}.")
        return STATE_DELETE_SELECT

    record = records[selected - 1]
    context.user_data[PENDING_DELETE_KEY] = {"index": selected - 1, "id": record.id}
    await update.effective_message.reply_text(
        f"Step 2/2: Delete {record.name} ({record.date.isoformat()})?\n"
        "Reply with yes to delete, or no to cancel."
    )
    return STATE_DELETE_CONFIRM


async def delete_confirm(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    pending = context.user_data.get(PENDING_DELETE_KEY)
    if not isinstance(pending, dict) or "index" not in pending:
        await update.effective_message.reply_text("Delete session expired. Send /delete to start again.")
        return ConversationHandler.END

    decision = (update.effective_message.text or "").strip().lower()
    if not _is_yes_no(decision):
        await update.effective_message.reply_text("Please reply with yes or no.")
        return STATE_DELETE_CONFIRM

    context.user_data.pop(PENDING_DELETE_KEY, None)
    if decision in {"no", "n"}:
        await update.effective_message.reply_text("Canceled. No changes were made.")
        return ConversationHandler.END

    index = int(pending["index"])
    records = deps.store.all_birthdays
    if index >= len(records) or records[index].id != pending["id"]:
        await update.effective_message.reply_text(
            "Could not delete because the birthday list changed. Send /delete and try again."
        )
        return ConversationHandler.END

    try:
        deps.store.remove([index])
    except OutOfRangeError:
        await update.effective_message.reply_text(
            "Could not delete because the birthday list changed. Send /delete and try again."
        )
        return ConversationHandler.END
    except PersistenceError:
        await update.effective_message.reply_text(f"Birthday deleted. {NOT_SAVED_WARNING}")
        return ConversationHandler.END

    await update.effective_message.reply_text("Birthday deleted.")
    LOGGER.info("Deleted birthday for %s", records[index].name)
    return ConversationHandler.END


async def cancel_command(update: Update, context: CallbackContext) -> int:
    deps = _deps(context)
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return ConversationHandler.END

    context.user_data.pop(PENDING_ADD_KEY, None)
    context.user_data.pop(PENDING_DELETE_KEY, None)
    await update.effective_message.reply_text("Wizard canceled.")
    return ConversationHandler.END


def build_handlers() -> list:
    text_only = filters.TEXT & ~filters.COMMAND

    add_conversation = ConversationHandler(
        entry_points=[CommandHandler("add", add_start)],
        states={
            STATE_ADD_NAME: [MessageHandler(text_only, add_name)],
            STATE_ADD_DATE: [MessageHandler(text_only, add_date)],
            STATE_ADD_NOTES: [MessageHandler(text_only, add_notes)],
            STATE_ADD_CONFIRM: [MessageHandler(text_only, add_confirm)],
        },
        fallbacks=[CommandHandler("cancel", cancel_command)],
        name="add_birthday_conversation",
        persistent=False,
    )

    delete_conversation = ConversationHandler(
        entry_points=[CommandHandler("delete", delete_start)],
        states={
            STATE_DELETE_SELECT: [MessageHandler(text_only, delete_select)],
            STATE_DELETE_CONFIRM: [MessageHandler(text_only, delete_confirm)],
        },
        fallbacks=[CommandHandler("cancel", cancel_command)],
        name="delete_birthday_conversation",
        persistent=False,
    )

    return [
        add_conversation,
        delete_conversation,
        CommandHandler(["start", "help"], help_command),
        CommandHandler("calendar", calendar_command),
        CommandHandler("week", week_command),
        CommandHandler("today", today_command),
        CommandHandler("list", list_command),
        CommandHandler("cancel", cancel_command),
        CallbackQueryHandler(calendar_callback, pattern=rf"^{CALLBACK_PREFIX}:"),
    ]
