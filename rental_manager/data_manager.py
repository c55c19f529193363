import pandas as pd
import os
import streamlit as st
import sqlite3
from datetime import date
import calendar

from pricing import PriceRule, SEASON_PRESETS, find_rule_for_date
from season_rules import SeasonRule, CATEGORY_COLORS

# Data lives in <repo>/data unless RENTAL_MANAGER_DB points somewhere else
DATA_DIR = os.path.join(os.path.dirname(__file__), '..', 'data')
DB_FILE = os.environ.get("RENTAL_MANAGER_DB", os.path.join(DATA_DIR, "rental_manager.db"))

PROPERTIES_TABLE = 'properties'
PROPERTIES_COLS = ['id', 'name', 'address', 'owner']

CALENDAR_PRICES_TABLE = 'calendar_prices'
CALENDAR_PRICES_COLS = ['id', 'property_id', 'start_date', 'end_date', 'price_per_night', 'currency',
                        'min_nights', 'available', 'season', 'notes']

SEASON_RULES_TABLE = 'season_rules'
SEASON_RULES_COLS = ['id', 'property_id', 'name', 'category', 'price_per_night', 'start_date', 'end_date',
                     'applies_to_days', 'min_nights', 'priority', 'active']

CUSTOM_HOLIDAYS_TABLE = 'custom_holidays'
CUSTOM_HOLIDAYS_COLS = ['id', 'date', 'name', 'kind']

CURRENCIES = ['ARS', 'USD', 'EUR']


# --- Database Helper Functions ---

def _ensure_data_dir():
    """Ensures the directory holding the database file exists."""
    db_dir = os.path.dirname(os.path.abspath(DB_FILE))
    if not os.path.exists(db_dir):
        os.makedirs(db_dir)
        print(f"Created data directory: {db_dir}")

def _get_db_connection():
    """Establishes a connection to the SQLite database."""
    _ensure_data_dir()
    conn = sqlite3.connect(DB_FILE)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn

def _initialize_database():
    """Creates the database tables if they don't exist."""
    conn = None
    try:
        conn = _get_db_connection()
        cursor = conn.cursor()

        cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS {PROPERTIES_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            address TEXT,
            owner TEXT
        )
        """)

        # Dates are stored as ISO text (YYYY-MM-DD) so range filters compare as strings
        cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS {CALENDAR_PRICES_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            property_id INTEGER NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            price_per_night REAL NOT NULL,
            currency TEXT NOT NULL DEFAULT 'USD',
            min_nights INTEGER NOT NULL DEFAULT 1,
            available INTEGER NOT NULL DEFAULT 1,
            season TEXT,
            notes TEXT,
            FOREIGN KEY (property_id) REFERENCES {PROPERTIES_TABLE}(id) ON DELETE CASCADE
        )
        """)

        # applies_to_days holds comma separated day keys ('vie,sab,dom'), empty for every day
        cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS {SEASON_RULES_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            property_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            category TEXT NOT NULL,
            price_per_night REAL NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            applies_to_days TEXT,
            min_nights INTEGER,
            priority INTEGER NOT NULL DEFAULT 50,
            active INTEGER NOT NULL DEFAULT 1,
            FOREIGN KEY (property_id) REFERENCES {PROPERTIES_TABLE}(id) ON DELETE CASCADE
        )
        """)

        cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS {CUSTOM_HOLIDAYS_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            name TEXT NOT NULL,
            kind TEXT NOT NULL DEFAULT 'custom'
        )
        """)

        conn.commit()
        print("Database tables checked/initialized successfully.")
    except sqlite3.Error as e:
        print(f"Error initializing database: {e}")
        st.error(f"Database initialization failed: {e}")
    finally:
        if conn:
            conn.close()

# Call initialization once when the module is loaded
_initialize_database()


def _iso(value) -> str:
    return pd.to_datetime(value).strftime('%Y-%m-%d')


def _execute_write(sql: str, params: tuple, description: str) -> int | None:
    """
    Runs a single INSERT/UPDATE/DELETE statement.

    Returns the affected row count, or None when the statement failed (the
    error is printed and shown with st.error).
    """
    conn = None
    try:
        conn = _get_db_connection()
        cursor = conn.cursor()
        cursor.execute(sql, params)
        conn.commit()
        return cursor.rowcount
    except sqlite3.Error as e:
        print(f"Error {description}: {e}")
        st.error(f"Failed {description}: {e}")
        if conn:
            conn.rollback()
        return None
    finally:
        if conn:
            conn.close()


# --- Properties ---

@st.cache_data
def load_properties():
    """Loads property data from the database."""
    print("Loading properties from DB...")
    conn = None
    try:
        conn = _get_db_connection()
        df = pd.read_sql_query(f"SELECT * FROM {PROPERTIES_TABLE} ORDER BY name", conn)
        if 'id' in df.columns:
            df['id'] = df['id'].astype(pd.Int64Dtype())
        return df
    except (sqlite3.Error, pd.errors.DatabaseError) as e:
        print(f"Error loading properties: {e}")
        st.error(f"Failed to load properties: {e}")
        return pd.DataFrame(columns=PROPERTIES_COLS)
    finally:
        if conn:
            conn.close()


def add_property(name: str, address: str = None, owner: str = None) -> bool:
    """Adds a new property to the database."""
    sql = f"INSERT INTO {PROPERTIES_TABLE} (name, address, owner) VALUES (?, ?, ?)"
    if _execute_write(sql, (name, address, owner), f"adding property '{name}'") is None:
        return False
    load_properties.clear()
    print(f"Property '{name}' added successfully.")
    return True


def update_property(property_id: int, name: str, address: str, owner: str) -> bool:
    """Updates an existing property in the database."""
    if property_id is None:
        st.error("Invalid property ID for update.")
        return False
    sql = f"UPDATE {PROPERTIES_TABLE} SET name = ?, address = ?, owner = ? WHERE id = ?"
    rowcount = _execute_write(sql, (name, address, owner, int(property_id)), f"updating property ID {property_id}")
    if rowcount is None:
        return False
    if rowcount == 0:
        print(f"Warning: No property found with ID {property_id} to update.")
        st.warning(f"No property found with ID {property_id} to update.")
        return False
    load_properties.clear()
    print(f"Property ID {property_id} updated successfully.")
    return True


# --- Calendar Prices ---

@st.cache_data
def load_calendar_prices(property_id: int, check_in: str = None, check_out: str = None):
    """
    Loads the calendar prices of a property in the order they were added.

    When check_in and check_out are given only the records touching that
    range are returned (end_date >= check_in and start_date <= check_out).
    """
    print(f"Loading calendar prices for property {property_id} from DB...")
    conn = None
    try:
        conn = _get_db_connection()
        sql = f"SELECT * FROM {CALENDAR_PRICES_TABLE} WHERE property_id = ?"
        params = [int(property_id)]
        if check_in and check_out:
            sql += " AND end_date >= ? AND start_date <= ?"
            params += [check_in, check_out]
        sql += " ORDER BY id"
        df = pd.read_sql_query(sql, conn, params=params)
        df['available'] = df['available'].astype(bool)
        return df
    except (sqlite3.Error, pd.errors.DatabaseError, ValueError) as e:
        print(f"Error loading calendar prices: {e}")
        st.error(f"Failed to load calendar prices: {e}")
        return pd.DataFrame(columns=CALENDAR_PRICES_COLS)
    finally:
        if conn:
            conn.close()


def add_calendar_price(property_id: int, start_date, end_date, price_per_night: float, currency: str = 'USD',
                       min_nights: int = 1, available: bool = True, season: str = None, notes: str = None) -> bool:
    """Adds a nightly price for a date range of a property."""
    try:
        start_str, end_str = _iso(start_date), _iso(end_date)
    except ValueError as e:
        print(f"Error adding calendar price: {e}")
        st.error(f"Failed to add calendar price: {e}")
        return False
    if end_str < start_str:
        st.error("La fecha de fin no puede ser anterior a la de inicio.")
        return False

    sql = f"""
    INSERT INTO {CALENDAR_PRICES_TABLE}
    (property_id, start_date, end_date, price_per_night, currency, min_nights, available, season, notes)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    """
    params = (int(property_id), start_str, end_str, float(price_per_night), currency,
              int(min_nights), int(bool(available)), season, notes)
    if _execute_write(sql, params, "adding calendar price") is None:
        return False
    load_calendar_prices.clear()
    print(f"Calendar price {start_str} - {end_str} for property ID {property_id} added successfully.")
    return True


def add_calendar_prices_from_stubs(property_id: int, stubs: list, currency: str = 'USD', min_nights: int = 1,
                                   season: str = None) -> int:
    """
    Stores the stubs produced by expand_season_preset / expand_special_dates.

    Returns the number of records inserted. Everything is written in one
    transaction, so on error nothing is stored and 0 is returned.
    """
    conn = None
    try:
        conn = _get_db_connection()
        cursor = conn.cursor()
        sql = f"""
        INSERT INTO {CALENDAR_PRICES_TABLE}
        (property_id, start_date, end_date, price_per_night, currency, min_nights, available, season, notes)
        VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?)
        """
        rows = [
            (int(property_id), stub['start_date'], stub['end_date'], float(stub['price']), currency,
             int(min_nights), season, stub.get('name'))
            for stub in stubs
        ]
        cursor.executemany(sql, rows)
        conn.commit()
        load_calendar_prices.clear()
        print(f"{len(rows)} calendar prices added for property ID {property_id}.")
        return len(rows)
    except (sqlite3.Error, KeyError, ValueError) as e:
        print(f"Error adding calendar prices: {e}")
        st.error(f"Failed to add calendar prices: {e}")
        if conn:
            conn.rollback()
        return 0
    finally:
        if conn:
            conn.close()


def delete_calendar_price(price_id: int) -> bool:
    rowcount = _execute_write(f"DELETE FROM {CALENDAR_PRICES_TABLE} WHERE id = ?", (int(price_id),),
                              f"deleting calendar price ID {price_id}")
    if not rowcount:
        return False
    load_calendar_prices.clear()
    print(f"Calendar price ID {price_id} deleted successfully.")
    return True


def _records(df: pd.DataFrame) -> list:
    """DataFrame rows as dicts, with NaN/NA turned into None."""
    if df.empty:
        return []
    return df.astype(object).where(pd.notna(df), None).to_dict('records')


def price_rules_from_df(df: pd.DataFrame) -> list:
    """Converts load_calendar_prices output into PriceRule objects, keeping the row order."""
    return [PriceRule.from_record(record) for record in _records(df)]


# --- Season Rules ---

@st.cache_data
def load_season_rules(property_id: int):
    """Loads the season rules of a property, highest priority first."""
    print(f"Loading season rules for property {property_id} from DB...")
    conn = None
    try:
        conn = _get_db_connection()
        df = pd.read_sql_query(
            f"SELECT * FROM {SEASON_RULES_TABLE} WHERE property_id = ? ORDER BY priority DESC, start_date, id",
            conn, params=[int(property_id)])
        df['active'] = df['active'].astype(bool)
        return df
    except (sqlite3.Error, pd.errors.DatabaseError, ValueError) as e:
        print(f"Error loading season rules: {e}")
        st.error(f"Failed to load season rules: {e}")
        return pd.DataFrame(columns=SEASON_RULES_COLS)
    finally:
        if conn:
            conn.close()


def replace_season_rules(property_id: int, rules: list) -> bool:
    """Replaces every season rule of a property with the given SeasonRule list."""
    conn = None
    try:
        conn = _get_db_connection()
        cursor = conn.cursor()
        cursor.execute(f"DELETE FROM {SEASON_RULES_TABLE} WHERE property_id = ?", (int(property_id),))
        sql = f"""
        INSERT INTO {SEASON_RULES_TABLE}
        (property_id, name, category, price_per_night, start_date, end_date, applies_to_days, min_nights, priority, active)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        cursor.executemany(sql, [
            (int(property_id), rule.name, rule.category, float(rule.price_per_night), rule.start_date,
             rule.end_date, ','.join(rule.applies_to_days), rule.min_nights, int(rule.priority), int(rule.active))
            for rule in rules
        ])
        conn.commit()
        load_season_rules.clear()
        print(f"{len(rules)} season rules saved for property ID {property_id}.")
        return True
    except (sqlite3.Error, ValueError) as e:
        print(f"Error saving season rules: {e}")
        st.error(f"Failed to save season rules: {e}")
        if conn:
            conn.rollback()
        return False
    finally:
        if conn:
            conn.close()


def delete_season_rule(rule_id: int) -> bool:
    rowcount = _execute_write(f"DELETE FROM {SEASON_RULES_TABLE} WHERE id = ?", (int(rule_id),),
                              f"deleting season rule ID {rule_id}")
    if not rowcount:
        return False
    load_season_rules.clear()
    return True


def season_rules_from_df(df: pd.DataFrame) -> list:
    rules = []
    for record in _records(df):
        days = record.get('applies_to_days') or ''
        rules.append(SeasonRule(
            name=record['name'],
            category=record['category'],
            price_per_night=float(record['price_per_night']),
            start_date=record['start_date'],
            end_date=record['end_date'],
            applies_to_days=[day for day in days.split(',') if day],
            min_nights=int(record['min_nights']) if record.get('min_nights') is not None else None,
            priority=int(record['priority']),
            active=bool(record['active']),
            id=record.get('id'),
            property_id=record.get('property_id'),
        ))
    return rules


# --- Custom Holidays ---

@st.cache_data
def load_custom_holidays():
    print("Loading custom holidays from DB...")
    conn = None
    try:
        conn = _get_db_connection()
        return pd.read_sql_query(f"SELECT * FROM {CUSTOM_HOLIDAYS_TABLE} ORDER BY date", conn)
    except (sqlite3.Error, pd.errors.DatabaseError) as e:
        print(f"Error loading custom holidays: {e}")
        st.error(f"Failed to load custom holidays: {e}")
        return pd.DataFrame(columns=CUSTOM_HOLIDAYS_COLS)
    finally:
        if conn:
            conn.close()


def add_custom_holiday(holiday_date, name: str, kind: str = 'custom') -> bool:
    sql = f"INSERT INTO {CUSTOM_HOLIDAYS_TABLE} (date, name, kind) VALUES (?, ?, ?)"
    if _execute_write(sql, (_iso(holiday_date), name, kind), f"adding custom holiday '{name}'") is None:
        return False
    load_custom_holidays.clear()
    print(f"Custom holiday '{name}' added successfully.")
    return True


def delete_custom_holiday(holiday_id: int) -> bool:
    rowcount = _execute_write(f"DELETE FROM {CUSTOM_HOLIDAYS_TABLE} WHERE id = ?", (int(holiday_id),),
                              f"deleting custom holiday ID {holiday_id}")
    if not rowcount:
        return False
    load_custom_holidays.clear()
    return True


def custom_holidays_records() -> list:
    """Custom holidays as plain dicts, the shape combine_holidays expects."""
    return _records(load_custom_holidays())


# --- Price Calendar HTML ---

def generate_month_price_calendar_html(year: int, month: int, rules: list, holidays: dict = None) -> str:
    """
    Generates an HTML calendar for a month, coloring each day by the season of
    the rule that prices it and showing the nightly price.

    Args:
        rules: PriceRule list, first match wins as in calculate_quote.
        holidays: Optional {date: Holiday} map; holidays get a marker.
    """
    holidays = holidays or {}
    cal = calendar.monthcalendar(year, month)
    month_name = date(year, month, 1).strftime('%B %Y')

    html = f"<h6>{month_name}</h6>"
    html += "<table class='price-calendar'>"
    html += "<tr><th>L</th><th>M</th><th>X</th><th>J</th><th>V</th><th>S</th><th>D</th></tr>"

    for week in cal:
        html += "<tr>"
        for day in week:
            if day == 0:
                html += "<td></td>"
                continue
            current = date(year, month, day).isoformat()
            rule = find_rule_for_date(current, rules)
            style = ""
            title = "Sin precio"
            price_label = ""
            if rule is not None:
                preset = SEASON_PRESETS.get(rule.season or '')
                color = preset['color'] if preset else CATEGORY_COLORS['media']
                style = f" style='background-color: {color}33;'"
                title = f"{rule.price_per_night:,.0f} {rule.currency}"
                price_label = f"<br><small>{rule.price_per_night:,.0f}</small>"
                if not rule.available:
                    style = " style='background-color: #e0e0e0; text-decoration: line-through;'"
                    title += " (no disponible)"
            marker = ""
            if current in holidays:
                marker = "<sup>★</sup>"
                title += f" - {holidays[current].name}"
            html += f"<td{style} title='{current}: {title}'>{day}{marker}{price_label}</td>"
        html += "</tr>"
    html += "</table>"
    return html


def get_calendar_css() -> str:
    """Returns the CSS styling for the price calendar."""
    return """
    <style>
        .price-calendar {
            width: 100%;
            border-collapse: collapse;
            margin-bottom: 1em;
            font-size: 0.85em;
        }
        .price-calendar th, .price-calendar td {
            border: 1px solid #ddd;
            padding: 4px;
            text-align: center;
            height: 38px;
            width: 14.28%;
            box-sizing: border-box;
        }
        .price-calendar th {
            background-color: #f2f2f2;
            font-weight: bold;
        }
        .price-calendar td:empty {
            background-color: #fafafa;
            border: none;
        }
        h6 {
            text-align: center;
            margin-top: 0.5em;
            margin-bottom: 0.5em;
            font-size: 1em;
        }
    </style>
    """
