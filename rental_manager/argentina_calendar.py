"""
Argentine national holidays, movable holidays and long weekends ("fines de semana largos").

Used by the holidays page and the Telegram bot to show which dates usually
need higher prices.
"""
from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.easter import easter

HOLIDAY_KINDS = ['inamovible', 'trasladable', 'puente', 'no_laborable', 'custom']

# Same date every year. 'trasladable' ones are moved to a Monday (see shift_movable_holiday).
FIXED_HOLIDAYS = {
    '01-01': ('Año Nuevo', 'inamovible'),
    '03-24': ('Día de la Memoria', 'inamovible'),
    '04-02': ('Día del Veterano y de los Caídos en Malvinas', 'inamovible'),
    '05-01': ('Día del Trabajador', 'inamovible'),
    '05-25': ('Día de la Revolución de Mayo', 'inamovible'),
    '06-17': ('Paso a la Inmortalidad del Gral. Güemes', 'inamovible'),
    '06-20': ('Paso a la Inmortalidad del Gral. Belgrano', 'inamovible'),
    '07-09': ('Día de la Independencia', 'inamovible'),
    '08-17': ('Paso a la Inmortalidad del Gral. San Martín', 'trasladable'),
    '10-12': ('Día del Respeto a la Diversidad Cultural', 'trasladable'),
    '11-20': ('Día de la Soberanía Nacional', 'trasladable'),
    '12-08': ('Inmaculada Concepción de María', 'inamovible'),
    '12-25': ('Navidad', 'inamovible'),
}

# Half working days. Listed as holidays but never start a long weekend.
NON_WORKING_DAYS = {
    '12-24': ('Nochebuena (mediodía)', 'no_laborable'),
    '12-31': ('Fin de Año (mediodía)', 'no_laborable'),
}

WEEKDAY_SHORT_ES = ['lun', 'mar', 'mié', 'jue', 'vie', 'sáb', 'dom']
MONTH_SHORT_ES = ['ene', 'feb', 'mar', 'abr', 'may', 'jun', 'jul', 'ago', 'sept', 'oct', 'nov', 'dic']


@dataclass
class Holiday:
    date: str  # YYYY-MM-DD
    name: str
    kind: str
    long_weekend: bool = False
    custom: bool = False
    id: int | None = None


@dataclass
class LongWeekend:
    name: str
    start_date: str
    end_date: str
    days: int


def carnival_days(year: int) -> tuple:
    """Carnival Monday and Tuesday (48 and 47 days before Easter)."""
    easter_sunday = easter(year)
    return easter_sunday - timedelta(days=48), easter_sunday - timedelta(days=47)


def holy_thursday_friday(year: int) -> tuple:
    easter_sunday = easter(year)
    return easter_sunday - timedelta(days=3), easter_sunday - timedelta(days=2)


def shift_movable_holiday(day: date) -> date:
    """
    Moves a 'trasladable' holiday: Tuesday/Wednesday go to the previous Monday,
    Thursday/Friday to the next Monday. Other days are kept.
    """
    weekday = day.weekday()
    if weekday in (1, 2):
        return day - timedelta(days=weekday)
    if weekday in (3, 4):
        return day + timedelta(days=7 - weekday)
    return day


def _is_long_weekend(day: date, holiday_dates: set) -> bool:
    weekday = day.weekday()
    # Friday followed by a Monday holiday
    if weekday == 4 and (day + timedelta(days=3)).isoformat() in holiday_dates:
        return True
    # Monday holiday
    if weekday == 0 and day.isoformat() in holiday_dates:
        return True
    # Thursday followed by a Friday holiday (4 days)
    if weekday == 3 and (day + timedelta(days=1)).isoformat() in holiday_dates:
        return True
    return False


def holidays_for_year(year: int) -> list:
    """
    Generates the national holidays of a year, sorted by date.

    Includes fixed holidays (movable ones already shifted), Carnival, Holy
    Thursday/Friday and the Dec 24/31 half days. Each holiday is flagged when
    it is part of a long weekend.
    """
    holidays = []
    holiday_dates = set()

    for month_day, (name, kind) in FIXED_HOLIDAYS.items():
        day = date.fromisoformat(f"{year}-{month_day}")
        if kind == 'trasladable':
            day = shift_movable_holiday(day)
        holidays.append(Holiday(date=day.isoformat(), name=name, kind=kind))
        holiday_dates.add(day.isoformat())

    carnival_monday, carnival_tuesday = carnival_days(year)
    holy_thursday, holy_friday = holy_thursday_friday(year)
    for day, name in [(carnival_monday, 'Carnaval (Lunes)'), (carnival_tuesday, 'Carnaval (Martes)'),
                      (holy_thursday, 'Jueves Santo'), (holy_friday, 'Viernes Santo')]:
        holidays.append(Holiday(date=day.isoformat(), name=name, kind='inamovible'))
        holiday_dates.add(day.isoformat())

    for month_day, (name, kind) in NON_WORKING_DAYS.items():
        holidays.append(Holiday(date=f"{year}-{month_day}", name=name, kind=kind))

    for holiday in holidays:
        holiday.long_weekend = _is_long_weekend(date.fromisoformat(holiday.date), holiday_dates)

    holidays.sort(key=lambda holiday: holiday.date)
    return holidays


def long_weekends(year: int) -> list:
    """Groups the year's holidays into long weekends of 3 or 4 days."""
    holidays = holidays_for_year(year)
    by_date = {holiday.date: holiday for holiday in holidays}
    weekends = []
    processed = set()

    for holiday in holidays:
        if holiday.date in processed:
            continue
        day = date.fromisoformat(holiday.date)
        weekday = day.weekday()

        if weekday == 0:
            weekends.append(LongWeekend(name=holiday.name, start_date=(day - timedelta(days=2)).isoformat(),
                                        end_date=holiday.date, days=3))
            processed.add(holiday.date)
        elif weekday == 4:
            weekends.append(LongWeekend(name=holiday.name, start_date=holiday.date,
                                        end_date=(day + timedelta(days=2)).isoformat(), days=3))
            processed.add(holiday.date)
        elif weekday == 3:
            friday = (day + timedelta(days=1)).isoformat()
            if friday in by_date:
                weekends.append(LongWeekend(name=f"{holiday.name} + {by_date[friday].name}",
                                            start_date=holiday.date,
                                            end_date=(day + timedelta(days=3)).isoformat(), days=4))
                processed.add(holiday.date)
                processed.add(friday)

    return weekends


def is_holiday(day, year: int = None) -> Holiday | None:
    """Returns the Holiday on the given date ('YYYY-MM-DD' or date), or None."""
    day_str = day.isoformat() if isinstance(day, date) else str(day)
    year = year or int(day_str[:4])
    for holiday in holidays_for_year(year):
        if holiday.date == day_str:
            return holiday
    return None


def month_holidays(year: int, month: int) -> dict:
    """Maps date to Holiday for one month (month is 1-12)."""
    prefix = f"{year}-{month:02d}"
    return {holiday.date: holiday for holiday in holidays_for_year(year) if holiday.date.startswith(prefix)}


def _short_date_es(day: date) -> str:
    return f"{WEEKDAY_SHORT_ES[day.weekday()]}, {day.day:02d} {MONTH_SHORT_ES[day.month - 1]}"


def holidays_summary(year: int) -> str:
    holidays = holidays_for_year(year)
    weekends = long_weekends(year)

    summary = f"Feriados {year}:\n\n"
    for holiday in holidays:
        label = _short_date_es(date.fromisoformat(holiday.date))
        summary += f"{label}: {holiday.name}{' (FDS largo)' if holiday.long_weekend else ''}\n"

    summary += f"\n\nFines de semana largos ({len(weekends)}):\n"
    for weekend in weekends:
        summary += f"- {weekend.name}: {weekend.days} días\n"
    return summary


def combine_holidays(year: int, custom_holidays) -> list:
    """
    Merges official holidays with custom ones for the given year.

    custom_holidays is a list of dicts with 'date', 'name', 'kind' and an
    optional 'id'. A custom holiday replaces the official one on the same date.
    """
    merged = {holiday.date: holiday for holiday in holidays_for_year(year)}
    for custom in custom_holidays:
        if str(custom['date']).startswith(str(year)):
            merged[custom['date']] = Holiday(
                date=custom['date'],
                name=custom['name'],
                kind=custom.get('kind') or 'custom',
                custom=True,
                id=custom.get('id'),
            )
    return sorted(merged.values(), key=lambda holiday: holiday.date)


def month_holidays_with_custom(year: int, month: int, custom_holidays) -> dict:
    prefix = f"{year}-{month:02d}"
    return {holiday.date: holiday for holiday in combine_holidays(year, custom_holidays)
            if holiday.date.startswith(prefix)}
