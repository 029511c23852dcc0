import sys
import os
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pos_core.async_ops import gateway_from_settings, run_sync
from pos_core.cart import item_count, line_total
from pos_core.catalog import CATEGORIES
from pos_core.config import load_settings
from pos_core.errors import PosError
from pos_core.icons import icon_for
from pos_core.log import configure_logging
from pos_core.money import flat_tax, format_price
from pos_core.service import PosController


# ============ Инициализация ============
@st.cache_resource
def get_settings():
    settings = load_settings()
    configure_logging(settings)
    return settings


st.set_page_config(
    page_title="POS Sale",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="collapsed",
)

settings = get_settings()

if "pos" not in st.session_state:
    st.session_state.pos = PosController(
        gateway_from_settings(settings), flat_tax(settings.tax_rate)
    )

pos: PosController = st.session_state.pos


def attempt(action, *args):
    """
    Выполняет вызов контроллера.
    PosError сохраняется в session_state и показывается после st.rerun()
    """
    try:
        result = action(*args)
        if hasattr(result, "__await__"):
            result = run_sync(result)
        return result, None
    except PosError as e:
        st.session_state.last_error = str(e)
        return None, e


def render_messages():
    """Показывает ошибку или уведомление, сохранённые до перезапуска"""
    error = st.session_state.pop("last_error", None)
    if error:
        st.error(error)
    notice = st.session_state.pop("last_notice", None)
    if notice:
        st.success(notice)


# ============ ШАГ: ВХОД ============
def render_login():
    st.title("🔐 Sign in")
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        _, error = attempt(pos.login, username, password)
        if error is None:
            attempt(pos.begin_selection)
        st.rerun()


# ============ ШАГ: КОМПАНИЯ / ЛОКАЦИЯ ============
def render_select():
    resolver = pos.resolver
    st.title(f"Welcome, {pos.user.display_name}!")
    st.caption("Select your company and location")

    if not resolver.companies:
        if st.button("🔄 Reload companies"):
            attempt(pos.begin_selection)
            st.rerun()

    company_ids = [""] + [c.id for c in resolver.companies]
    names = {c.id: c.name for c in resolver.companies}
    current = resolver.company.id if resolver.company else ""
    company_id = st.selectbox(
        "Company",
        company_ids,
        index=company_ids.index(current),
        format_func=lambda cid: names.get(cid, "Select a company..."),
    )
    if company_id != current:
        attempt(pos.select_company, company_id)
        st.rerun()

    if resolver.company is None:
        st.selectbox("Location", ["Select a company first..."], disabled=True)
    elif not resolver.locations:
        st.selectbox("Location", ["No locations available"], disabled=True)
    else:
        location_ids = [""] + [loc.id for loc in resolver.locations]
        labels = {loc.id: f"{loc.name} - {loc.city}" for loc in resolver.locations}
        chosen = resolver.location.id if resolver.location else ""
        location_id = st.selectbox(
            "Location",
            location_ids,
            index=location_ids.index(chosen),
            format_func=lambda lid: labels.get(lid, "Select a location..."),
        )
        if location_id and location_id != chosen:
            attempt(pos.select_location, location_id)
            st.rerun()

    if resolver.company and resolver.location:
        st.info(f"**Company:** {resolver.company.name}  \n**Location:** {resolver.location.name}")

    if st.button("Continue to POS", type="primary", disabled=resolver.location is None):
        attempt(pos.start_session)
        st.rerun()


# ============ ШАГ: ПРОДАЖА ============
def render_sale():
    session = pos.session

    top = st.columns([6, 3, 1])
    with top[0]:
        search = st.text_input("Search", value=pos.search, label_visibility="collapsed", placeholder="Search")
        if search != pos.search:
            pos.set_search(search)
    with top[1]:
        st.markdown(f"**{session.location.name}**  \n{session.location.address} {session.location.city}")
    with top[2]:
        if st.button("Logout"):
            pos.logout()
            st.rerun()

    left, right = st.columns([2, 1])

    with left:
        category = st.radio("Category", CATEGORIES, horizontal=True, index=CATEGORIES.index(pos.category))
        if category != pos.category:
            pos.set_category(category)

        if pos.catalog.location_id is None:
            st.warning("Catalog not loaded")
            if st.button("🔄 Retry"):
                attempt(pos.reload_catalog)
                st.rerun()

        visible = list(pos.visible_products())
        if not visible:
            st.info("No products match")
        grid = st.columns(4)
        for idx, product in enumerate(visible):
            with grid[idx % 4]:
                label = f"{icon_for(product.name)} {product.name}\n\n{format_price(product.unit_price)}"
                if st.button(label, key=f"add_{product.id}", use_container_width=True):
                    pos.add(product)
                    st.rerun()

    with right:
        st.subheader("Walk-in Customer")

        if not pos.cart.lines:
            st.caption("No items in cart")
        for line in pos.cart.lines:
            cols = st.columns([4, 1, 1, 2])
            with cols[0]:
                st.write(f"{icon_for(line.name)} **{line.name}** × {line.quantity}")
                st.caption(format_price(line_total(line)) + (f" · SKU {line.sku}" if line.sku else ""))
            with cols[1]:
                if st.button("−", key=f"dec_{line.product_id}"):
                    attempt(pos.set_quantity, line.product_id, line.quantity - 1)
                    st.rerun()
            with cols[2]:
                if st.button("+", key=f"inc_{line.product_id}"):
                    attempt(pos.set_quantity, line.product_id, line.quantity + 1)
                    st.rerun()
            with cols[3]:
                if st.button("Remove", key=f"rm_{line.product_id}"):
                    pos.remove(line.product_id)
                    st.rerun()

        st.divider()
        totals = pos.totals()
        st.write(f"Subtotal: {format_price(totals.subtotal)}")
        st.write(f"Tax: {format_price(totals.tax)}")
        st.markdown(f"### Total: {format_price(totals.total)}")
        st.caption(f"{item_count(pos.cart)} items")

        cols = st.columns(2)
        with cols[0]:
            if st.button("Clear", use_container_width=True, disabled=not pos.cart.lines):
                pos.clear_cart()
                st.rerun()
        with cols[1]:
            if st.button("Charge", type="primary", use_container_width=True, disabled=not pos.cart.lines):
                receipt, error = attempt(pos.checkout)
                if error is None:
                    st.session_state.last_notice = (
                        f"Sale {receipt.id[:8]} completed: {format_price(receipt.totals.total)}"
                    )
                st.rerun()


render_messages()

if pos.step == "login":
    render_login()
elif pos.step == "select":
    render_select()
else:
    render_sale()
