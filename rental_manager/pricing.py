import math
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

DEFAULT_CURRENCY = 'USD'

# Presets for the Argentine coast seasons. Periods are 'MM-DD' pairs, both ends inclusive.
SEASON_PRESETS = {
    'alta': {
        'name': 'Temporada Alta',
        'color': '#ef4444',
        'periods': [
            {'start': '12-15', 'end': '02-28'},  # 15 Dic - 28 Feb
            {'start': '07-01', 'end': '07-31'},  # Julio completo
        ],
        'multiplier': 1.0,
    },
    'media': {
        'name': 'Temporada Media',
        'color': '#f59e0b',
        'periods': [
            {'start': '03-01', 'end': '03-31'},
            {'start': '09-01', 'end': '11-30'},
        ],
        'multiplier': 0.8,
    },
    'baja': {
        'name': 'Temporada Baja',
        'color': '#22c55e',
        'periods': [
            {'start': '04-01', 'end': '06-30'},
            {'start': '08-01', 'end': '08-31'},
        ],
        'multiplier': 0.6,
    },
    'especial': {
        'name': 'Fecha Especial',
        'color': '#8b5cf6',
        'periods': [],
        'multiplier': 1.5,
    },
}

SPECIAL_DATES = [
    {'name': 'Navidad', 'start': '12-24', 'end': '12-25', 'multiplier': 1.5},
    {'name': 'Año Nuevo', 'start': '12-31', 'end': '01-01', 'multiplier': 1.5},
    {'name': 'Día de la Independencia', 'start': '07-09', 'end': '07-09', 'multiplier': 1.2},
]

CURRENCY_SYMBOLS = {'ARS': '$', 'EUR': '€'}


class UnknownSeasonPresetError(KeyError):
    """Raised when a season preset name is not one of SEASON_PRESETS."""


@dataclass
class PriceRule:
    """A nightly price valid for every date in [start_date, end_date]."""
    start_date: str
    end_date: str
    price_per_night: float
    currency: str = DEFAULT_CURRENCY
    min_nights: int = 1
    available: bool = True
    season: str | None = None
    notes: str | None = None
    id: int | None = None
    property_id: int | None = None

    def __post_init__(self):
        # Lookup compares ISO strings, so dates are normalized once here
        self.start_date = _to_iso(self.start_date)
        self.end_date = _to_iso(self.end_date)

    def covers(self, day: str) -> bool:
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_record(cls, record: dict) -> 'PriceRule':
        """Builds a rule from a storage row (dict or pandas Series converted with to_dict())."""
        min_nights = record.get('min_nights')
        available = record.get('available')
        return cls(
            start_date=record['start_date'],
            end_date=record['end_date'],
            price_per_night=float(record.get('price_per_night') or 0),
            currency=record.get('currency') or DEFAULT_CURRENCY,
            min_nights=int(min_nights) if min_nights else 1,
            available=True if available is None else bool(available),
            season=record.get('season') or None,
            notes=record.get('notes') or None,
            id=record.get('id'),
            property_id=record.get('property_id'),
        )


@dataclass
class NightPrice:
    date: str
    price: float
    season: str | None = None


@dataclass
class PriceQuote:
    nights: int
    average_price: int
    total: float
    breakdown: list = field(default_factory=list)
    currency: str = DEFAULT_CURRENCY
    available: bool = False
    min_nights_required: int = 1
    mixed_currency: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


# --- Date Helpers ---

def _to_iso(value) -> str:
    """Returns 'YYYY-MM-DD' for a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value))


def _round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


# --- Rule Lookup ---

def find_rule_for_date(day, rules):
    """
    Returns the first rule whose interval contains the given day, or None.

    Rules are scanned in the order given, so with overlapping rules the one
    listed first wins. Callers that load rules from storage should keep them
    ordered (load_calendar_prices returns them in insertion order).
    """
    day_str = _to_iso(day)
    for rule in rules:
        if rule.covers(day_str):
            return rule
    return None


# --- Quote Computation ---

def calculate_quote(check_in, check_out, rules, fallback_price: float = 0) -> PriceQuote:
    """
    Calculates the price of a stay night by night.

    Args:
        check_in: Arrival date (date, datetime or 'YYYY-MM-DD').
        check_out: Departure date. The check-out day itself is not charged.
        rules: List of PriceRule, scanned in order (first match wins).
        fallback_price: Nightly price for nights with no matching rule.

    Returns:
        PriceQuote. Stays where check-out is not after check-in give an empty,
        unavailable quote instead of raising.
    """
    start = _to_datetime(check_in)
    end = _to_datetime(check_out)
    nights = math.ceil((end - start).total_seconds() / 86400)

    if nights <= 0:
        return PriceQuote(nights=0, average_price=0, total=0, breakdown=[],
                          currency=DEFAULT_CURRENCY, available=False, min_nights_required=1)

    breakdown = []
    total = 0
    available = True
    min_nights_required = 1
    currency = DEFAULT_CURRENCY
    currencies_seen = set()

    for i in range(nights):
        day = _to_iso(start + timedelta(days=i))
        rule = find_rule_for_date(day, rules)

        if rule is not None:
            if not rule.available:
                available = False
            breakdown.append(NightPrice(date=day, price=rule.price_per_night, season=rule.season))
            total += rule.price_per_night
            # Last matching rule decides the currency of the whole quote
            currency = rule.currency
            currencies_seen.add(rule.currency)
            min_nights_required = max(min_nights_required, rule.min_nights)
        elif fallback_price > 0:
            breakdown.append(NightPrice(date=day, price=fallback_price))
            total += fallback_price
        else:
            breakdown.append(NightPrice(date=day, price=0))

    if nights < min_nights_required:
        available = False

    return PriceQuote(
        nights=nights,
        average_price=_round_half_up(total / nights),
        total=total,
        breakdown=breakdown,
        currency=currency,
        available=available,
        min_nights_required=min_nights_required,
        mixed_currency=len(currencies_seen) > 1,
    )


# --- Formatting ---

def _group_es_ar(amount, max_decimals: int) -> str:
    """Formats a number with '.' as thousands separator and ',' for decimals."""
    rounded = Decimal(str(amount)).quantize(Decimal(1).scaleb(-max_decimals), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.{max_decimals}f}"
    if '.' in text:
        integer_part, decimals = text.split('.')
        decimals = decimals.rstrip('0')
    else:
        integer_part, decimals = text, ''
    integer_part = integer_part.replace(',', '.')
    return f"{integer_part},{decimals}" if decimals else integer_part


def format_price(amount, currency: str = DEFAULT_CURRENCY) -> str:
    """
    Formats an amount for display using the Argentine (es-AR) conventions.

    'USD' gives 'USD 45.200' (up to 3 decimals kept, e.g. 'USD 1.234,5').
    Any other code gives the es-AR currency style without decimals, e.g.
    '$ 45.200' for ARS, with a non-breaking space after the symbol.
    """
    if currency == 'USD':
        return f"USD {_group_es_ar(amount, 3)}"
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol}\xa0{_group_es_ar(abs(amount), 0)}"


# --- Season Presets ---

def _stub_for_period(year: int, start_mmdd: str, end_mmdd: str, price: int) -> dict:
    start_month, start_day = (int(part) for part in start_mmdd.split('-'))
    end_month, end_day = (int(part) for part in end_mmdd.split('-'))

    end_year = year
    # Periods like 15 Dic - 28 Feb end in the following year
    if start_month > end_month:
        end_year = year + 1

    return {
        'start_date': f"{year}-{start_month:02d}-{start_day:02d}",
        'end_date': f"{end_year}-{end_month:02d}-{end_day:02d}",
        'price': price,
    }


def expand_season_preset(year: int, preset_name: str, base_price: float) -> list:
    """
    Expands a season preset into concrete {start_date, end_date, price} stubs for a year.

    Raises:
        UnknownSeasonPresetError: if preset_name is not in SEASON_PRESETS.
    """
    if preset_name not in SEASON_PRESETS:
        raise UnknownSeasonPresetError(preset_name)
    config = SEASON_PRESETS[preset_name]
    price = _round_half_up(base_price * config['multiplier'])
    return [
        _stub_for_period(year, period['start'], period['end'], price)
        for period in config['periods']
    ]


def expand_special_dates(year: int, base_price: float) -> list:
    """Same as expand_season_preset for SPECIAL_DATES; each stub also carries the date's name."""
    stubs = []
    for special in SPECIAL_DATES:
        stub = _stub_for_period(year, special['start'], special['end'],
                                _round_half_up(base_price * special['multiplier']))
        stub['name'] = special['name']
        stubs.append(stub)
    return stubs
