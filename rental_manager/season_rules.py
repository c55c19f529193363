import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta

from dateutil.easter import easter

# Categories, from most to least expensive. 'excepcion' is used for one-off overrides.
CATEGORIES = ['muy_alta', 'alta', 'media', 'baja', 'excepcion']

CATEGORY_LABELS = {
    'muy_alta': 'Muy Alta',
    'alta': 'Alta',
    'media': 'Media',
    'baja': 'Baja',
    'excepcion': 'Excepción',
}

CATEGORY_COLORS = {
    'muy_alta': '#fecaca',
    'alta': '#fed7aa',
    'media': '#fde68a',
    'baja': '#bbf7d0',
    'excepcion': '#e9d5ff',
}

# Keys match date.weekday(): Monday is 0
DAY_KEYS = ['lun', 'mar', 'mie', 'jue', 'vie', 'sab', 'dom']
DAY_LABELS = {'lun': 'L', 'mar': 'M', 'mie': 'X', 'jue': 'J', 'vie': 'V', 'sab': 'S', 'dom': 'D'}

# Usual priorities: 100 exceptions, 90 holidays, 80 long weekends, 50 seasons
PRIORITY_EXCEPTION = 100
PRIORITY_HOLIDAYS = 90
PRIORITY_LONG_WEEKEND = 80
PRIORITY_SEASON = 50


@dataclass
class SeasonRule:
    name: str
    category: str
    price_per_night: float
    start_date: str
    end_date: str
    applies_to_days: list = field(default_factory=list)  # empty means every day
    min_nights: int | None = None
    priority: int = PRIORITY_SEASON
    active: bool = True
    id: int | None = None
    property_id: int | None = None

    def applies_on(self, day: date) -> bool:
        if not self.active:
            return False
        day_str = day.isoformat()
        if day_str < self.start_date or day_str > self.end_date:
            return False
        if self.applies_to_days and DAY_KEYS[day.weekday()] not in self.applies_to_days:
            return False
        return True


@dataclass
class DayPrice:
    date: str
    price: float
    category: str
    rule_name: str
    rule_id: int | None
    priority: int
    min_nights: int | None


@dataclass
class ConflictWarning:
    dates: str
    rules: list
    message: str


def price_for_date(day: date, rules) -> DayPrice | None:
    """Returns the price set by the highest-priority active rule for the day, or None."""
    applicable = [rule for rule in rules if rule.applies_on(day)]
    if not applicable:
        return None

    # sorted() is stable, so equal priorities keep their input order
    winner = sorted(applicable, key=lambda rule: rule.priority, reverse=True)[0]
    return DayPrice(
        date=day.isoformat(),
        price=winner.price_per_night,
        category=winner.category,
        rule_name=winner.name,
        rule_id=winner.id,
        priority=winner.priority,
        min_nights=winner.min_nights,
    )


def month_prices(year: int, month: int, rules) -> dict:
    """Maps 'YYYY-MM-DD' to DayPrice for every priced day of the month (month is 1-12)."""
    prices = {}
    _, days_in_month = calendar.monthrange(year, month)
    for day_number in range(1, days_in_month + 1):
        day_price = price_for_date(date(year, month, day_number), rules)
        if day_price:
            prices[day_price.date] = day_price
    return prices


def year_prices(year: int, rules) -> dict:
    prices = {}
    for month in range(1, 13):
        prices.update(month_prices(year, month, rules))
    return prices


def detect_conflicts(rules) -> list:
    """
    Finds pairs of active rules with the same priority whose dates overlap.

    Rules restricted to weekdays only conflict when they share at least one weekday.
    """
    conflicts = []
    active_rules = [rule for rule in rules if rule.active]

    for i, rule_a in enumerate(active_rules):
        for rule_b in active_rules[i + 1:]:
            if rule_a.priority != rule_b.priority:
                continue

            overlap = not (rule_a.end_date < rule_b.start_date or rule_b.end_date < rule_a.start_date)
            if not overlap:
                continue

            if rule_a.applies_to_days and rule_b.applies_to_days:
                if not set(rule_a.applies_to_days) & set(rule_b.applies_to_days):
                    continue

            overlap_start = max(rule_a.start_date, rule_b.start_date)
            overlap_end = min(rule_a.end_date, rule_b.end_date)
            conflicts.append(ConflictWarning(
                dates=f"{overlap_start} - {overlap_end}",
                rules=[rule_a, rule_b],
                message=f'"{rule_a.name}" y "{rule_b.name}" tienen la misma prioridad ({rule_a.priority}) y se solapan',
            ))

    return conflicts


def find_uncovered_days(year: int, rules) -> list:
    """Lists the ISO dates of the year that no active rule prices."""
    prices = year_prices(year, rules)
    uncovered = []
    current = date(year, 1, 1)
    while current.year == year:
        if current.isoformat() not in prices:
            uncovered.append(current.isoformat())
        current += timedelta(days=1)
    return uncovered


def year_metrics(year: int, rules) -> dict:
    prices = year_prices(year, rules)
    total_days = (date(year + 1, 1, 1) - date(year, 1, 1)).days
    covered_days = len(prices)
    total_price = sum(day_price.price for day_price in prices.values())
    high_season_days = sum(1 for day_price in prices.values() if day_price.category in ('muy_alta', 'alta'))

    return {
        'active_rules': sum(1 for rule in rules if rule.active),
        'high_season_days': high_season_days,
        'average_price': int(total_price / covered_days + 0.5) if covered_days else 0,
        'covered_days': covered_days,
        'uncovered_days': total_days - covered_days,
        'coverage_percent': int(covered_days / total_days * 100 + 0.5),
    }


# --- Movable feasts ---

def easter_date(year: int) -> date:
    return easter(year)


def carnival_dates(year: int) -> tuple:
    """Carnival weekend, from Saturday (50 days before Easter) to Tuesday (47 days before)."""
    easter_sunday = easter(year)
    return easter_sunday - timedelta(days=50), easter_sunday - timedelta(days=47)


def holy_week_dates(year: int) -> tuple:
    """Holy Week, from Palm Sunday to Easter Monday."""
    easter_sunday = easter(year)
    return easter_sunday - timedelta(days=7), easter_sunday + timedelta(days=1)


# --- Presets ---

COSTA_ESMERALDA_MULTIPLIERS = {
    'fiestas': 1.8,
    'enero': 1.5,
    'feb1': 1.3,
    'feb2': 1.1,
    'semana_santa': 1.3,
    'carnaval': 1.3,
    'fds': 1.0,
    'baja': 0.8,
}


def costa_esmeralda_preset(year: int, base_price: float, multipliers: dict = None) -> dict:
    """
    Standard summer configuration for Costa Esmeralda.

    Args:
        year: Season year. 'Fiestas' runs from Dec 23 of this year to Jan 2 of the next.
        base_price: Reference nightly price; every rule applies a multiplier to it.
        multipliers: Optional overrides for COSTA_ESMERALDA_MULTIPLIERS.

    Returns:
        dict with 'name', 'description' and 'rules' (list of SeasonRule).
    """
    factors = dict(COSTA_ESMERALDA_MULTIPLIERS)
    if multipliers:
        factors.update(multipliers)

    def price(key):
        return int(base_price * factors[key] + 0.5)

    holy_week_start, holy_week_end = holy_week_dates(year)
    carnival_start, carnival_end = carnival_dates(year)

    rules = [
        SeasonRule(name='Fiestas', category='muy_alta', price_per_night=price('fiestas'),
                   start_date=f"{year}-12-23", end_date=f"{year + 1}-01-02",
                   min_nights=7, priority=PRIORITY_HOLIDAYS),
        SeasonRule(name='Enero - Temporada Alta', category='alta', price_per_night=price('enero'),
                   start_date=f"{year}-01-03", end_date=f"{year}-01-31",
                   min_nights=3, priority=PRIORITY_SEASON),
        SeasonRule(name='Febrero 1ra quincena', category='alta', price_per_night=price('feb1'),
                   start_date=f"{year}-02-01", end_date=f"{year}-02-15",
                   min_nights=2, priority=PRIORITY_SEASON),
        SeasonRule(name='Febrero 2da quincena', category='media', price_per_night=price('feb2'),
                   start_date=f"{year}-02-16", end_date=f"{year}-02-28",
                   min_nights=2, priority=PRIORITY_SEASON),
        SeasonRule(name='Semana Santa', category='alta', price_per_night=price('semana_santa'),
                   start_date=holy_week_start.isoformat(), end_date=holy_week_end.isoformat(),
                   min_nights=3, priority=PRIORITY_LONG_WEEKEND),
        SeasonRule(name='Carnaval', category='alta', price_per_night=price('carnaval'),
                   start_date=carnival_start.isoformat(), end_date=carnival_end.isoformat(),
                   min_nights=2, priority=PRIORITY_LONG_WEEKEND),
        SeasonRule(name='Fds largo fuera temporada', category='media', price_per_night=price('fds'),
                   start_date=f"{year}-03-01", end_date=f"{year}-12-22",
                   applies_to_days=['vie', 'sab', 'dom'], min_nights=2, priority=70),
        SeasonRule(name='Temporada Baja', category='baja', price_per_night=price('baja'),
                   start_date=f"{year}-03-01", end_date=f"{year}-12-22",
                   min_nights=1, priority=40),
    ]

    return {
        'name': 'Verano Costa Esmeralda - Standard',
        'description': 'Configuración estándar para temporada de verano en Costa Esmeralda',
        'rules': rules,
    }


def empty_preset() -> dict:
    return {
        'name': 'Configuración vacía',
        'description': 'Empezar desde cero sin reglas predefinidas',
        'rules': [],
    }
