import os
import sys
from datetime import date, timedelta

import telebot
from telebot import types
from telegram_bot_calendar import DetailedTelegramCalendar, LSTEP

import data_manager as dm
import argentina_calendar
from pricing import calculate_quote, format_price

TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")
if not TELEGRAM_BOT_TOKEN:
    print("Error: TELEGRAM_BOT_TOKEN environment variable not set.")
    sys.exit(1)

bot = telebot.TeleBot(TELEGRAM_BOT_TOKEN)

quote_data = {}  # Quote wizard state per chat

CHECK_IN_CALENDAR = 1
CHECK_OUT_CALENDAR = 2


# --- Helper Functions ---

def get_property_id_from_input(property_name: str) -> int | None:
    """Returns the ID of the property with that name, or None if it does not exist."""
    properties_df = dm.load_properties()
    if properties_df.empty or property_name not in properties_df['name'].values:
        print(f"Property Name {property_name} not found.")
        return None
    return int(properties_df[properties_df['name'] == property_name]['id'].iloc[0])


def quote_summary(property_name: str, check_in: date, check_out: date, quote) -> str:
    """Builds the reply text for a quote."""
    status = "✅ Disponible" if quote.available else "⛔ No disponible"
    lines = [
        f"🏠 {property_name}",
        f"📅 {check_in:%d/%m/%Y} → {check_out:%d/%m/%Y} ({quote.nights} noches)",
        status,
        f"Total: {format_price(quote.total, quote.currency)}",
        f"Promedio por noche: {format_price(quote.average_price, quote.currency)}",
    ]
    if quote.nights < quote.min_nights_required:
        lines.append(f"Mínimo de noches para esas fechas: {quote.min_nights_required}")
    if quote.total == 0:
        lines.append("No hay precios cargados para esas fechas.")
    return "\n".join(lines)


def long_weekends_summary(year: int, from_date: date) -> str:
    weekends = [weekend for weekend in argentina_calendar.long_weekends(year) if weekend.end_date >= from_date.isoformat()]
    if not weekends:
        return f"No quedan fines de semana largos en {year}."
    lines = [f"Próximos fines de semana largos {year}:"]
    for weekend in weekends:
        lines.append(f"- {weekend.start_date} → {weekend.end_date}: {weekend.name} ({weekend.days} días)")
    return "\n".join(lines)


# --- Commands ---

@bot.message_handler(commands=['start', 'help'])
def send_welcome(message):
    help_text = "¡Hola! Soy un bot para cotizar estadías.\n\n" \
                "Usa /cotizar para consultar precio y disponibilidad de una propiedad.\n" \
                "Usa /feriados para ver los próximos fines de semana largos."
    bot.reply_to(message, help_text)


@bot.message_handler(commands=['feriados'])
def send_long_weekends(message):
    today = date.today()
    bot.reply_to(message, long_weekends_summary(today.year, today))


@bot.message_handler(commands=['cotizar'])
def new_quote(message):
    """Starts the quote wizard."""
    chat_id = message.chat.id
    quote_data[chat_id] = {}

    try:
        property_names = dm.load_properties()['name'].tolist()
    except Exception as e:
        print(f"Error in new_quote: {e}")
        bot.reply_to(message, "Ocurrió un error al cargar las propiedades. Intenta más tarde.")
        return

    if not property_names:
        bot.reply_to(message, "No hay propiedades disponibles. Intenta más tarde.")
        return

    keyboard = types.ReplyKeyboardMarkup(one_time_keyboard=True, row_width=3)
    for name in property_names:
        keyboard.add(name)
    msg = bot.reply_to(message, "Por favor, selecciona la propiedad:", reply_markup=keyboard)
    bot.register_next_step_handler(msg, process_property_name)


def process_property_name(message):
    chat_id = message.chat.id
    property_name = message.text.strip()

    property_id = get_property_id_from_input(property_name)
    if property_id is None:
        bot.reply_to(message, "Nombre de propiedad inválido. Usa /cotizar para empezar de nuevo.",
                     reply_markup=types.ReplyKeyboardRemove(selective=False))
        quote_data.pop(chat_id, None)
        return

    quote_data[chat_id]['property_id'] = property_id
    quote_data[chat_id]['property_name'] = property_name

    calendar, step = DetailedTelegramCalendar(calendar_id=CHECK_IN_CALENDAR, min_date=date.today()).build()
    bot.send_message(chat_id, f"Selecciona el CHECK-IN {LSTEP[step]}", reply_markup=calendar)


@bot.callback_query_handler(func=DetailedTelegramCalendar().func(calendar_id=CHECK_IN_CALENDAR))
def check_in_selected(c):
    chat_id = c.message.chat.id
    result, key, step = DetailedTelegramCalendar(calendar_id=CHECK_IN_CALENDAR, min_date=date.today()).process(c.data)
    if not result and key:
        bot.edit_message_text(f"Selecciona el CHECK-IN {LSTEP[step]}", chat_id, c.message.message_id, reply_markup=key)
    elif result:
        if chat_id not in quote_data:
            bot.send_message(chat_id, "La consulta expiró. Usa /cotizar para empezar de nuevo.")
            return
        quote_data[chat_id]['check_in'] = result
        bot.edit_message_text(f"Check-in: {result:%d/%m/%Y}", chat_id, c.message.message_id)

        calendar, step = DetailedTelegramCalendar(calendar_id=CHECK_OUT_CALENDAR,
                                                  min_date=result + timedelta(days=1)).build()
        bot.send_message(chat_id, f"Selecciona el CHECK-OUT {LSTEP[step]}", reply_markup=calendar)


@bot.callback_query_handler(func=DetailedTelegramCalendar().func(calendar_id=CHECK_OUT_CALENDAR))
def check_out_selected(c):
    chat_id = c.message.chat.id
    data = quote_data.get(chat_id)
    if not data or 'check_in' not in data:
        bot.send_message(chat_id, "La consulta expiró. Usa /cotizar para empezar de nuevo.")
        return

    result, key, step = DetailedTelegramCalendar(calendar_id=CHECK_OUT_CALENDAR,
                                                 min_date=data['check_in'] + timedelta(days=1)).process(c.data)
    if not result and key:
        bot.edit_message_text(f"Selecciona el CHECK-OUT {LSTEP[step]}", chat_id, c.message.message_id, reply_markup=key)
    elif result:
        bot.edit_message_text(f"Check-out: {result:%d/%m/%Y}", chat_id, c.message.message_id)
        try:
            prices_df = dm.load_calendar_prices(data['property_id'], data['check_in'].isoformat(), result.isoformat())
            quote = calculate_quote(data['check_in'], result, dm.price_rules_from_df(prices_df))
            bot.send_message(chat_id, quote_summary(data['property_name'], data['check_in'], result, quote))
        except Exception as e:
            print(f"Error calculating quote: {e}")
            bot.send_message(chat_id, "❌ Ocurrió un error al calcular el precio. Por favor, revisá los registros del servidor.")
        finally:
            quote_data.pop(chat_id, None)


@bot.message_handler(func=lambda message: True)
def handle_message(message):
    bot.reply_to(message, "Usa /cotizar para consultar un precio o /feriados para ver los fines de semana largos.")


if __name__ == "__main__":
    print("Starting Telegram bot...")
    bot.infinity_polling()
