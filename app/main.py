"""
Streamlit Frontend for PowerBill

Screens:
1. Properties - add, open and delete homes/apartments
2. Meters - bulk add account numbers, rename and remove meters
3. Meter detail - tenant details, bill refresh, PDF receipt, share link
4. Settings - API key, backup export and import

The UI never edits data itself; every change is a MeterStore call.
"""

import asyncio
import atexit

import streamlit as st

from powerbill.audit import setup_logging
from powerbill.config import get_settings
from powerbill.models import MeterUpdate, PropertyType, Tenant
from powerbill.serialization import dumps
from powerbill.services.billing import FetchError, SimulatedBillService, official_bill_url
from powerbill.services.documents import (
    receipt_filename,
    render_bill_receipt,
    whatsapp_share_url,
)
from powerbill.store import BackupImportError, MeterStore, StoreError


st.set_page_config(
    page_title="PowerBill Pro",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_store() -> MeterStore:
    """Create the one store for this process (cached)."""
    setup_logging(get_settings().app.debug_mode)
    store = MeterStore.from_settings()
    atexit.register(store.close)
    return store


@st.cache_resource
def get_bill_service() -> SimulatedBillService:
    return SimulatedBillService()


def open_property(property_id=None):
    st.session_state.property_id = property_id
    st.session_state.meter_id = None


def open_meter(meter_id=None):
    st.session_state.meter_id = meter_id


def main():
    """Main application entry point."""
    store = get_store()

    st.session_state.setdefault("property_id", None)
    st.session_state.setdefault("meter_id", None)

    st.sidebar.title("⚡ PowerBill Pro")
    st.sidebar.markdown("---")
    page = st.sidebar.radio("Navigate to:", ["🏠 Properties", "⚙️ Settings"], index=0)

    st.sidebar.markdown("---")
    st.sidebar.caption(
        f"{len(store.profiles)} properties · {store.data.meter_count} meters"
    )

    if page == "⚙️ Settings":
        render_settings_page(store)
        return

    property_id = st.session_state.property_id
    meter_id = st.session_state.meter_id
    if property_id and store.data.find_property(property_id) is None:
        open_property(None)
        property_id = None

    if property_id is None:
        render_properties_page(store)
    elif meter_id and store.data.find_property(property_id).find_meter(meter_id):
        render_meter_page(store, property_id, meter_id)
    else:
        render_meters_page(store, property_id)


def render_properties_page(store: MeterStore):
    st.title("🏠 Properties")

    with st.form("add_property", clear_on_submit=True):
        col1, col2 = st.columns([3, 1])
        name = col1.text_input("Property name", placeholder="e.g. Lake House")
        property_type = col2.selectbox(
            "Type",
            options=list(PropertyType),
            format_func=lambda t: t.value.title(),
        )
        if st.form_submit_button("➕ Add Property", type="primary"):
            try:
                store.add_property(name, property_type)
                st.rerun()
            except StoreError as e:
                st.error(str(e))

    if not store.profiles:
        st.info("No properties yet. Add your first home or apartment above.")
        return

    for prop in store.profiles:
        icon = "🏠" if prop.property_type == PropertyType.HOME else "🏢"
        col1, col2, col3 = st.columns([6, 1, 1])
        col1.markdown(f"**{icon} {prop.name}**  \n{len(prop.items)} meters")
        col2.button("Open", key=f"open_{prop.id}", on_click=open_property, args=(prop.id,))
        if col3.button("🗑️", key=f"delete_{prop.id}", help="Delete property and its meters"):
            store.delete_property(prop.id)
            st.rerun()


def render_meters_page(store: MeterStore, property_id: str):
    prop = store.get_property(property_id)

    st.button("← All properties", on_click=open_property, args=(None,))
    st.title(prop.name)

    with st.expander("➕ Add UKSC numbers", expanded=not prop.items):
        with st.form("bulk_add", clear_on_submit=True):
            text = st.text_area(
                "One per line, or separated by commas",
                placeholder="110390320, 110390321\n110390322",
            )
            if st.form_submit_button("Add Numbers", type="primary") and text.strip():
                added = store.add_meters_bulk(prop.id, text)
                st.success(f"Added {len(added)} meters")
                st.rerun()

    query = st.text_input("🔍 Search UKSC number or tenant", "").strip().lower()
    items = [
        m for m in prop.items
        if not query
        or query in m.account_number.lower()
        or query in m.label.lower()
        or query in m.tenant.name.lower()
    ]

    if not prop.items:
        st.info("No meters yet. Add UKSC numbers above.")
        return

    for meter in items:
        col1, col2, col3, col4 = st.columns([4, 3, 1, 1])
        label = col1.text_input(
            "Label",
            value=meter.label,
            key=f"label_{meter.id}",
            label_visibility="collapsed",
        )
        if label.strip() and label != meter.label:
            store.update_meter(prop.id, meter.id, MeterUpdate(label=label.strip()))
        col1.caption(meter.account_number)
        col2.markdown(meter.tenant.name or "_No tenant_")
        col3.button("Open", key=f"meter_{meter.id}", on_click=open_meter, args=(meter.id,))
        if col4.button("🗑️", key=f"remove_{meter.id}", help="Delete this UKSC number"):
            store.remove_meter(prop.id, meter.id)
            st.rerun()


def render_meter_page(store: MeterStore, property_id: str, meter_id: str):
    meter = store.get_meter(property_id, meter_id)

    st.button("← Back", on_click=open_meter, args=(None,))
    st.title(meter.label)
    st.caption(f"UKSC {meter.account_number}")

    left, right = st.columns(2)

    with left:
        st.subheader("👤 Tenant")
        with st.form("tenant"):
            name = st.text_input("Tenant Name", value=meter.tenant.name)
            address = st.text_input("Address / Plot", value=meter.tenant.address)
            phone = st.text_input("Phone Number", value=meter.tenant.phone)
            if st.form_submit_button("Save Changes"):
                store.update_tenant(
                    property_id, meter_id, Tenant(name=name, address=address, phone=phone)
                )
                st.success("Tenant details saved")
                st.rerun()

        st.markdown(
            "Direct fetching from the utility is not available. "
            f"[Verify on the official site]({official_bill_url(meter.account_number)})"
        )

    with right:
        st.subheader("🧾 Latest Bill")
        if st.button("🔄 Refresh Bill", type="primary"):
            with st.spinner("Refreshing..."):
                try:
                    run_async(store.refresh_bill(property_id, meter_id, get_bill_service()))
                    st.rerun()
                except (FetchError, StoreError) as e:
                    st.error(f"Could not refresh the bill: {e}")

        bill = meter.last_snapshot
        if bill is None:
            st.info("No bill fetched yet.")
            return

        st.metric("Amount", f"₹{bill.amount:g}")
        st.markdown(
            f"**Status:** {bill.status.value.upper()}  \n"
            f"**Units:** {bill.units_consumed:g} kWh  \n"
            f"**Billing date:** {bill.billing_date:%d %b %Y}  \n"
            f"**Due date:** {bill.due_date:%d %b %Y}"
        )
        st.download_button(
            "⬇️ Download PDF",
            data=render_bill_receipt(meter, bill),
            file_name=receipt_filename(meter, bill),
            mime="application/pdf",
        )
        st.link_button("💬 Share on WhatsApp", whatsapp_share_url(meter, bill))


def render_settings_page(store: MeterStore):
    st.title("⚙️ Settings")

    st.subheader("🔐 Gemini API Key")
    with st.form("api_key"):
        key = st.text_input("API key", value=store.api_key, type="password")
        if st.form_submit_button("Save"):
            store.set_api_key(key)
            st.success("API key saved locally.")
    st.caption("Used for future intelligent bill parsing features.")

    st.markdown("---")
    st.subheader("💾 Data Portability")

    st.download_button(
        "⬇️ Export Backup",
        data=dumps(store.data),
        file_name=store.backup_filename(),
        mime="application/json",
    )

    uploaded = st.file_uploader("Import Data", type=["json"])
    if uploaded is not None:
        st.warning("Importing replaces all current properties, meters and the API key.")
        if st.button("Replace with imported data", type="primary"):
            try:
                store.import_snapshot(uploaded.getvalue())
                st.success("Data imported successfully!")
            except BackupImportError as e:
                st.error(f"Invalid file format: {e}")


if __name__ == "__main__":
    main()
