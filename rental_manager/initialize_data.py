import sys
from datetime import date

import data_manager
import season_rules
from pricing import SEASON_PRESETS, expand_season_preset, expand_special_dates

# Demo properties and their base nightly price in USD
DEMO_PROPERTIES = [
    {"name": "Casa Lote 214", "address": "Costa Esmeralda, Barrio Marítimo I", "owner": "Demo", "base_price": 150},
    {"name": "Casa Lote 87", "address": "Costa Esmeralda, Barrio Golf", "owner": "Demo", "base_price": 200},
]

# Minimum stay per season preset
DEMO_MIN_NIGHTS = {'alta': 5, 'media': 2, 'baja': 1, 'especial': 3}


def seed_demo_data(year: int):
    """
    Creates the demo properties (if missing) and fills their calendar prices
    and season rules for the given year.

    Properties that already have calendar prices are left untouched.
    """
    existing = data_manager.load_properties()
    for demo in DEMO_PROPERTIES:
        if demo['name'] not in existing['name'].values:
            print(f"Property '{demo['name']}' not found. Creating it...")
            data_manager.add_property(demo['name'], demo['address'], demo['owner'])

    properties_df = data_manager.load_properties()
    for demo in DEMO_PROPERTIES:
        property_id = int(properties_df[properties_df['name'] == demo['name']]['id'].iloc[0])
        if not data_manager.load_calendar_prices(property_id).empty:
            print(f"'{demo['name']}' already has calendar prices. No action taken.")
            continue

        # Special dates first, so they win over the season that contains them
        special = expand_special_dates(year, demo['base_price'])
        data_manager.add_calendar_prices_from_stubs(property_id, special, min_nights=DEMO_MIN_NIGHTS['especial'],
                                                    season='especial')
        for preset_name in SEASON_PRESETS:
            stubs = expand_season_preset(year, preset_name, demo['base_price'])
            if stubs:
                data_manager.add_calendar_prices_from_stubs(property_id, stubs, min_nights=DEMO_MIN_NIGHTS[preset_name],
                                                            season=preset_name)

        preset = season_rules.costa_esmeralda_preset(year, demo['base_price'])
        data_manager.replace_season_rules(property_id, preset['rules'])
        print(f"'{demo['name']}' seeded with prices for {year}.")


if __name__ == "__main__":
    seed_year = int(sys.argv[1]) if len(sys.argv) > 1 else date.today().year
    print(f"Seeding demo data for {seed_year} into {data_manager.DB_FILE}...")
    seed_demo_data(seed_year)
    print("Demo data initialization process complete.")
