import os
import tempfile

import pytest

# data_manager creates its tables on import, so the database path has to be set first
_TEST_DB_DIR = tempfile.mkdtemp(prefix="rental_manager_tests_")
os.environ["RENTAL_MANAGER_DB"] = os.path.join(_TEST_DB_DIR, "test.db")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")


@pytest.fixture
def dm():
    """data_manager on an empty database with cleared caches."""
    import streamlit as st
    import data_manager

    conn = data_manager._get_db_connection()
    try:
        for table in (data_manager.CALENDAR_PRICES_TABLE, data_manager.SEASON_RULES_TABLE,
                      data_manager.CUSTOM_HOLIDAYS_TABLE, data_manager.PROPERTIES_TABLE):
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
    finally:
        conn.close()
    st.cache_data.clear()
    return data_manager


@pytest.fixture
def property_id(dm):
    assert dm.add_property("Casa Test", "Costa Esmeralda", "Ana")
    return int(dm.load_properties().iloc[0]['id'])
