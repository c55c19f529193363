import streamlit as st
import data_manager

# Configure the Streamlit page settings
st.set_page_config(
    page_title="Gestor de Alquileres - Precios",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("Bienvenido al Gestor de Alquileres 🏠")
st.markdown(
    """
    Esta aplicación te ayuda a definir los precios por noche de tus propiedades y a cotizar estadías.

    **Navegación:** Utiliza el menú de la barra lateral para acceder a las diferentes secciones:

    - **Propiedades:** Agregá y editá las propiedades en alquiler.
    - **Precios por fecha:** Cargá precios por rango de fechas o generalos a partir de las temporadas (alta, media, baja).
    - **Reglas de temporada:** Armá reglas con prioridad, días de la semana y mínimo de noches, y revisá conflictos y días sin precio.
    - **Cotizar estadía:** Buscá disponibilidad y precio para un check-in y check-out.
    - **Feriados:** Consultá feriados y fines de semana largos de Argentina y agregá fechas propias.
    """
)

properties_df = data_manager.load_properties()
col1, col2 = st.columns(2)
col1.metric("Propiedades", len(properties_df))
col2.metric("Monedas admitidas", ", ".join(data_manager.CURRENCIES))

st.sidebar.header("Navegación")
st.sidebar.markdown("Selecciona una opción para comenzar.")
