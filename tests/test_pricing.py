from datetime import date, datetime

import pytest

from pricing import (
    PriceRule, PriceQuote, UnknownSeasonPresetError, calculate_quote, expand_season_preset,
    expand_special_dates, find_rule_for_date, format_price,
)


def test_check_out_before_check_in_gives_empty_quote():
    quote = calculate_quote('2025-01-10', '2025-01-10', [PriceRule('2025-01-01', '2025-01-31', 100)])
    assert quote.nights == 0
    assert quote.total == 0
    assert quote.average_price == 0
    assert quote.breakdown == []
    assert quote.available is False

    assert calculate_quote('2025-01-10', '2025-01-05', []).nights == 0


def test_single_rule_prices_every_night():
    rules = [PriceRule('2025-01-01', '2025-01-31', 100, min_nights=2)]
    quote = calculate_quote(date(2025, 1, 10), date(2025, 1, 13), rules)

    assert quote.nights == 3
    assert quote.total == 300
    assert quote.average_price == 100
    assert quote.available is True
    assert quote.currency == 'USD'
    assert quote.min_nights_required == 2
    assert [night.date for night in quote.breakdown] == ['2025-01-10', '2025-01-11', '2025-01-12']


def test_check_out_day_is_not_charged():
    rules = [
        PriceRule('2025-01-01', '2025-01-10', 100),
        PriceRule('2025-01-11', '2025-01-31', 500),
    ]
    quote = calculate_quote('2025-01-09', '2025-01-11', rules)
    assert quote.total == 200


def test_unavailable_rule_blocks_the_stay():
    rules = [
        PriceRule('2025-01-01', '2025-01-11', 100),
        PriceRule('2025-01-12', '2025-01-12', 100, available=False),
    ]
    quote = calculate_quote('2025-01-10', '2025-01-14', rules)
    assert quote.available is False
    assert quote.total == 400


def test_stay_shorter_than_min_nights_is_unavailable():
    rules = [PriceRule('2025-01-01', '2025-01-31', 100, min_nights=3)]
    quote = calculate_quote('2025-01-10', '2025-01-12', rules)
    assert quote.nights == 2
    assert quote.available is False
    assert quote.min_nights_required == 3


def test_min_nights_is_the_largest_over_the_stay():
    rules = [
        PriceRule('2025-01-01', '2025-01-10', 100, min_nights=2),
        PriceRule('2025-01-11', '2025-01-31', 100, min_nights=5),
    ]
    quote = calculate_quote('2025-01-08', '2025-01-12', rules)
    assert quote.min_nights_required == 5
    assert quote.available is False


def test_fallback_price_for_nights_without_rule():
    quote = calculate_quote('2025-05-01', '2025-05-05', [], fallback_price=100)
    assert quote.total == 400
    assert quote.available is True
    assert all(night.price == 100 and night.season is None for night in quote.breakdown)


def test_nights_without_rule_or_fallback_cost_zero():
    quote = calculate_quote('2025-05-01', '2025-05-03', [])
    assert quote.total == 0
    assert quote.available is True
    assert [night.price for night in quote.breakdown] == [0, 0]


def test_first_matching_rule_wins():
    rules = [
        PriceRule('2025-12-24', '2025-12-25', 300, season='especial'),
        PriceRule('2025-12-15', '2026-02-28', 100, season='alta'),
    ]
    assert find_rule_for_date('2025-12-24', rules).price_per_night == 300
    assert find_rule_for_date(date(2025, 12, 26), rules).price_per_night == 100
    assert find_rule_for_date('2025-03-01', rules) is None


def test_average_price_rounds_half_up():
    rules = [
        PriceRule('2025-01-01', '2025-01-01', 100),
        PriceRule('2025-01-02', '2025-01-02', 101),
    ]
    quote = calculate_quote('2025-01-01', '2025-01-03', rules)
    assert quote.total == 201
    assert quote.average_price == 101


def test_partial_days_round_up_to_a_night():
    rules = [PriceRule('2025-01-01', '2025-01-31', 100)]
    quote = calculate_quote(datetime(2025, 1, 10, 14, 0), datetime(2025, 1, 12, 10, 0), rules)
    assert quote.nights == 2
    assert quote.total == 200


def test_last_matching_rule_sets_currency_and_flags_mixed():
    rules = [
        PriceRule('2025-01-01', '2025-01-01', 50000, currency='ARS'),
        PriceRule('2025-01-02', '2025-01-02', 100, currency='USD'),
    ]
    quote = calculate_quote('2025-01-01', '2025-01-03', rules)
    assert quote.currency == 'USD'
    assert quote.mixed_currency is True

    single = calculate_quote('2025-01-01', '2025-01-02', rules)
    assert single.currency == 'ARS'
    assert single.mixed_currency is False


def test_quote_to_dict():
    quote = calculate_quote('2025-01-01', '2025-01-02', [PriceRule('2025-01-01', '2025-01-31', 80, season='baja')])
    data = quote.to_dict()
    assert isinstance(quote, PriceQuote)
    assert data['total'] == 80
    assert data['breakdown'] == [{'date': '2025-01-01', 'price': 80, 'season': 'baja'}]


def test_price_rule_normalizes_dates():
    rule = PriceRule(date(2025, 3, 1), datetime(2025, 3, 10, 12, 0), 90)
    assert rule.start_date == '2025-03-01'
    assert rule.end_date == '2025-03-10'
    assert rule.covers('2025-03-10')
    assert not rule.covers('2025-03-11')


def test_price_rule_from_record():
    rule = PriceRule.from_record({
        'id': 7, 'property_id': 1, 'start_date': '2025-01-01', 'end_date': '2025-01-31',
        'price_per_night': 120, 'currency': None, 'min_nights': None, 'available': 0,
        'season': 'alta', 'notes': None,
    })
    assert rule.currency == 'USD'
    assert rule.min_nights == 1
    assert rule.available is False
    assert rule.id == 7


def test_format_price_usd_uses_argentine_grouping():
    assert format_price(45200, 'USD') == 'USD 45.200'
    assert format_price(45200) == 'USD 45.200'
    assert format_price(1234.5, 'USD') == 'USD 1.234,5'
    assert format_price(0.1234, 'USD') == 'USD 0,123'


def test_format_price_other_currencies_have_symbol_and_no_decimals():
    assert format_price(45200, 'ARS') == '$\xa045.200'
    assert format_price(45200.6, 'ARS') == '$\xa045.201'
    assert format_price(1500000, 'EUR') == '€\xa01.500.000'
    assert format_price(10, 'BRL') == 'BRL\xa010'


def test_expand_alta_preset_crosses_year_boundary():
    stubs = expand_season_preset(2025, 'alta', 10000)
    assert stubs == [
        {'start_date': '2025-12-15', 'end_date': '2026-02-28', 'price': 10000},
        {'start_date': '2025-07-01', 'end_date': '2025-07-31', 'price': 10000},
    ]


def test_expand_preset_applies_multiplier():
    assert [stub['price'] for stub in expand_season_preset(2025, 'media', 100)] == [80, 80]
    assert [stub['price'] for stub in expand_season_preset(2025, 'baja', 100)] == [60, 60]
    assert expand_season_preset(2025, 'baja', 125)[0]['price'] == 75


def test_especial_preset_has_no_periods():
    assert expand_season_preset(2025, 'especial', 100) == []


def test_unknown_preset_raises():
    with pytest.raises(UnknownSeasonPresetError):
        expand_season_preset(2025, 'invierno', 100)
    with pytest.raises(KeyError):
        expand_season_preset(2025, 'invierno', 100)


def test_expand_special_dates():
    stubs = expand_special_dates(2025, 100)
    assert stubs == [
        {'start_date': '2025-12-24', 'end_date': '2025-12-25', 'price': 150, 'name': 'Navidad'},
        {'start_date': '2025-12-31', 'end_date': '2026-01-01', 'price': 150, 'name': 'Año Nuevo'},
        {'start_date': '2025-07-09', 'end_date': '2025-07-09', 'price': 120, 'name': 'Día de la Independencia'},
    ]
