"""
Streamlit UI for the Best Price Planner

- Input: catalog (generated, uploaded JSON, or the database) + items to buy
- Solve: branch-and-bound search for the cheapest plan
- Display: chosen vendor per item, totals, price matrix and search stats
"""

import json
import logging
import random

import streamlit as st

from catalog_generator import generate_catalog, pick_random_items, unwrap_catalog
from catalog_index import build_catalog_index
from config import settings
from errors import BestPriceError
from search_engine import SearchOptions
from solver import solve_best_plan

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

st.set_page_config(page_title="Best Price Planner", layout="wide")

st.title("Best Price Planner 🛒")
st.caption("Cheapest way to buy every item, with as few vendors as possible")

# ============================================================================
# CATALOG
# ============================================================================


@st.cache_data
def load_generated_catalog(seed: int) -> dict:
    return generate_catalog(seed=seed)["shops"]


def load_database_catalog() -> dict:
    from catalog_store import CatalogStore
    from database import get_db_manager

    db_manager = get_db_manager()
    db_manager.init_db()
    with db_manager.session_scope() as session:
        return CatalogStore.load_catalog(session)


source = st.radio("Catalog source", ["Generate", "Upload JSON", "Database"], horizontal=True)

catalog = None
try:
    if source == "Generate":
        catalog_seed = st.number_input("Catalog seed", value=42, step=1)
        catalog = load_generated_catalog(int(catalog_seed))
    elif source == "Upload JSON":
        uploaded = st.file_uploader("shops.json", type="json")
        if uploaded is not None:
            catalog = unwrap_catalog(json.load(uploaded))
    else:
        catalog = load_database_catalog()
except (BestPriceError, ValueError) as e:
    st.error(f"❌ Failed to load catalog: {e}")
    st.stop()

if not catalog:
    st.write("Choose or upload a catalog to begin.")
    st.stop()

try:
    index = build_catalog_index(catalog, max_vendors=settings.max_vendors)
except BestPriceError as e:
    st.error(f"❌ Invalid catalog: {e}")
    st.stop()

st.write(f"{index.vendor_count} vendors, {len(index.item_ids)} distinct items")

# ============================================================================
# REQUEST
# ============================================================================

col_input_1, col_input_2 = st.columns([2, 1])

with col_input_1:
    chosen = st.multiselect("Items to buy", options=index.item_ids)

with col_input_2:
    random_count = st.number_input(
        "...or pick this many at random",
        min_value=1,
        max_value=len(index.item_ids),
        value=min(settings.DEFAULT_ITEMS, len(index.item_ids)),
    )

with st.expander("Search options"):
    options = SearchOptions(
        cost_prune=st.checkbox("Cost prune", value=True),
        lower_bound_prune=st.checkbox("Lower-bound prune", value=True),
        option_prune=st.checkbox("Option prune", value=True),
        memoize=st.checkbox("Memoize states", value=True),
        greedy_seed=st.checkbox("Seed with greedy plan", value=True),
        time_limit_sec=settings.TIME_LIMIT_SEC,
    )

if st.button("🔍 Find best plan", type="primary"):
    requested = chosen or pick_random_items(int(random_count), index.item_ids, random.Random())

    try:
        with st.spinner("Searching..."):
            result = solve_best_plan(index, requested, options=options)
    except BestPriceError as e:
        st.error(f"❌ {e}")
        st.stop()

    if not result.feasible:
        st.error(f"No plan exists. Not stocked anywhere: {', '.join(result.missing_items)}")
        st.stop()

    plan = result.plan
    col_rec_1, col_rec_2, col_rec_3 = st.columns(3)
    with col_rec_1:
        st.metric("💰 Total cost", plan.total_cost)
    with col_rec_2:
        st.metric("🏪 Vendors", plan.vendor_count)
    with col_rec_3:
        st.metric("⚡ Time (ms)", f"{result.stats.elapsed_ms:.2f}")

    st.subheader("Plan")
    st.dataframe([item.model_dump() for item in plan.selected_items], use_container_width=True)

    st.subheader("Price matrix")
    st.dataframe(index.to_price_matrix(result.requested_items), use_container_width=True)

    st.subheader("Search stats")
    st.json(result.stats.to_dict())

    st.download_button("Download plan JSON", result.to_json(), file_name="plan.json")
