# invoicer.py: Streamlit invoice builder with live preview, PDF export and Notion sync
# Run with: streamlit run invoicer.py

import logging
import uuid
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from invoice_builder.config import configure_logging, load_settings
from invoice_builder.export import build_pdf_bytes, pdf_filename, render_preview_html
from invoice_builder.formatting import CURRENCY_SYMBOLS, format_date_long, format_number, parse_date
from invoice_builder.local_store import LocalStore
from invoice_builder.models import DISCOUNT_TYPES, Party, new_draft
from invoice_builder.notion import ImageRelayError, NotionClient, NotionError, fetch_image_as_data_uri
from invoice_builder.preview import LOGO_IMAGE
from invoice_builder.snapshot import build_invoice_snapshot
from invoice_builder.store import (
    AddLineItem,
    DraftStore,
    RemoveLineItem,
    SelectClient,
    SetDiscount,
    SetField,
    SetTax,
    UpdateLineItem,
)

logger = logging.getLogger("invoicer")

STEP_NAMES = {
    1: "Your company",
    2: "Your client",
    3: "Invoice details",
    4: "Invoice terms",
}
TOTAL_STEPS = len(STEP_NAMES)
DISCOUNT_LABELS = {"none": "No discount", "percentage": "Percentage (%)", "fixed": "Fixed amount"}

# ---- Collaborators ----

@st.cache_resource
def get_settings():
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings

def get_notion() -> Optional[NotionClient]:
    settings = get_settings()
    if not settings.notion_enabled:
        return None
    if "notion" not in st.session_state:
        st.session_state.notion = NotionClient.from_settings(settings)
    return st.session_state.notion

def local_store() -> LocalStore:
    return st.session_state.local_store

def draft_store() -> DraftStore:
    return st.session_state.store

def _save_company(company: Party):
    try:
        local_store().save_company(company)
    except OSError as e:
        logger.error("Error saving company data: %s", e)
        st.toast("Could not save your company details locally")

# ---- Session ----

def ensure_session():
    if "current_step" not in st.session_state:
        st.session_state.current_step = -1
    if "userkey" not in st.session_state:
        st.session_state.userkey = ""
    if "clients" not in st.session_state:
        st.session_state.clients = []
    if "items_rev" not in st.session_state:
        st.session_state.items_rev = 0
    if "logo_cache" not in st.session_state:
        st.session_state.logo_cache = {}

def start_session(userkey: str):
    """Open the user's local store and create the session draft from it."""
    store = LocalStore.for_user(get_settings().data_dir, userkey)
    st.session_state.local_store = store
    draft = new_draft(company=store.load_company(), invoice_number=store.next_invoice_number())
    st.session_state.store = DraftStore(draft, on_company_change=_save_company)
    st.session_state.theme = store.load_theme()
    logger.info("Started invoice session for invoice %s", draft.invoice.number)

def set_step(n: int):
    st.session_state.current_step = n

def apply(action):
    return draft_store().apply_update(action)

# ---- UI helpers ----

def field_input(section: str, field: str, label: str, widget=st.text_input, **kwargs):
    """Render a text widget bound to a draft field; changes go through SetField."""
    target = getattr(draft_store().draft, section)
    current = getattr(target, field) or ""
    value = widget(label, value=current, key=f"{section}_{field}", **kwargs)
    if value != current:
        apply(SetField(section, field, value))

def date_input(field: str, label: str):
    inv = draft_store().draft.invoice
    current = parse_date(getattr(inv, field))
    st.caption(format_date_long(getattr(inv, field)))
    value = st.date_input(label, value=current, key=f"invoice_{field}")
    if value != current:
        apply(SetField("invoice", field, value))

def nav_buttons(step: int):
    c_back, c_next = st.columns(2)
    if step > 1 and c_back.button("Back", key=f"back_{step}"):
        set_step(step - 1); st.rerun()
    if step < TOTAL_STEPS and c_next.button("Continue", key=f"next_{step}", type="primary"):
        set_step(step + 1); st.rerun()

def load_clients(notify: bool = True):
    notion = get_notion()
    if notion is None:
        return
    try:
        st.session_state.clients = notion.list_clients()
    except NotionError as e:
        logger.error("Error loading clients: %s", e)
        st.toast("Could not load clients from Notion")
        return
    if notify and st.session_state.clients:
        st.toast(f"Loaded {len(st.session_state.clients)} client(s) from Notion")

def client_logo_data_uri() -> Optional[str]:
    """Inline the client's remote logo for the PDF, cached per URL."""
    url = draft_store().draft.client.logo_url
    if not url:
        return None
    cache = st.session_state.logo_cache
    if url not in cache:
        try:
            cache[url] = fetch_image_as_data_uri(url)
        except (ImageRelayError, ValueError) as e:
            logger.error("Error converting image to base64: %s", e)
            cache[url] = None
    return cache[url]

# ---- Steps ----

def step_minus_1():
    st.header("Access: Enter a User Key")
    st.caption("Use a unique key to keep your company details separate. Keep it private.")
    col1, col2 = st.columns([3,1])
    with col1:
        st.session_state.userkey = st.text_input("Enter a User Key", st.session_state.get("userkey",""))
    with col2:
        st.markdown("<div style='height: 1.95rem'></div>", unsafe_allow_html=True)
        if st.button("Generate"):
            st.session_state.userkey = str(uuid.uuid4())
            st.rerun()

    if st.button("Continue"):
        key = st.session_state.get("userkey","").strip()
        if not key:
            st.error("Please enter a user key (or generate one).")
            return
        start_session(key)
        load_clients(notify=False)
        set_step(1)
        st.rerun()

def step1():
    st.header(f"Step 1: {STEP_NAMES[1]}")
    field_input("company", "email", "Email")
    field_input("company", "name", "Company name")
    field_input("company", "logo", "Logo initial", max_chars=2)
    field_input("company", "address", "Address")
    c1, c2, c3 = st.columns(3)
    with c1:
        field_input("company", "city", "City")
    with c2:
        field_input("company", "state", "State")
    with c3:
        field_input("company", "zip", "Zip code")
    field_input("company", "country", "Country")
    field_input("company", "tax_id", "Tax ID")
    nav_buttons(1)

def client_selector():
    clients = st.session_state.clients
    client = draft_store().draft.client
    options = [None] + [c.id for c in clients]
    names = {c.id: (c.name or "Unnamed Client") for c in clients}
    index = options.index(client.id) if client.id in options else 0

    c_sel, c_refresh = st.columns([4,1])
    picked = c_sel.selectbox(
        "Saved clients", options, index=index,
        format_func=lambda cid: "Select a client..." if cid is None else names.get(cid, cid),
        key=f"client_selector_{st.session_state.items_rev}",
    )
    with c_refresh:
        st.markdown("<div style='height: 1.75rem'></div>", unsafe_allow_html=True)
        if st.button("Refresh"):
            load_clients(); st.rerun()

    if picked != options[index]:
        record = next((c for c in clients if c.id == picked), None)
        apply(SelectClient(record))
        st.session_state.items_rev += 1
        if record is not None:
            st.toast(f"Loaded client: {record.name}")
        st.rerun()

def save_client():
    client = draft_store().draft.client
    if not client.name.strip():
        st.error("Please enter a client name first")
        return
    try:
        record = get_notion().create_client(client)
    except NotionError as e:
        logger.error("Error saving client: %s", e)
        st.error("Could not save client to Notion")
        return
    apply(SetField("client", "id", record.id))
    st.session_state.items_rev += 1
    load_clients(notify=False)
    st.toast(f'Client "{client.name}" saved to Notion!')

def step2():
    st.header(f"Step 2: {STEP_NAMES[2]}")
    notion_on = get_notion() is not None
    if notion_on:
        client_selector()

    # Widget keys change with the selection so fields reload from the draft
    rev = st.session_state.items_rev
    client = draft_store().draft.client
    for field, label in (("email", "Email"), ("name", "Client name"), ("logo", "Logo initial"),
                         ("address", "Address"), ("city", "City"), ("state", "State"),
                         ("zip", "Zip code"), ("country", "Country"), ("tax_id", "Tax ID")):
        current = getattr(client, field) or ""
        value = st.text_input(label, value=current, key=f"client_{field}_{rev}")
        if value != current:
            apply(SetField("client", field, value))

    if notion_on and st.button("Save client to Notion"):
        save_client()
    nav_buttons(2)

def line_items_editor():
    store = draft_store()
    items = store.draft.line_items
    rev = st.session_state.items_rev
    only_one = len(items) == 1
    for idx, item in enumerate(items):
        cA, cB, cC, cD = st.columns([4,1,2,1])
        desc = cA.text_input("Description", value=item.description, key=f"desc_{rev}_{idx}", label_visibility="collapsed", placeholder="Description")
        qty = cB.text_input("Qty", value=format_number(item.quantity), key=f"qty_{rev}_{idx}", label_visibility="collapsed", placeholder="Qty")
        price = cC.text_input("Price", value=format_number(item.price) if item.price else "", key=f"price_{rev}_{idx}", label_visibility="collapsed", placeholder="Price")
        if desc != item.description:
            apply(UpdateLineItem(idx, "description", desc))
        if qty != format_number(item.quantity):
            apply(UpdateLineItem(idx, "quantity", qty))
        if price != (format_number(item.price) if item.price else ""):
            apply(UpdateLineItem(idx, "price", price))
        if cD.button("×", key=f"rm_{rev}_{idx}", disabled=only_one):
            apply(RemoveLineItem(idx))
            st.session_state.items_rev += 1
            st.rerun()

    if st.button("+ Add item"):
        apply(AddLineItem())
        st.session_state.items_rev += 1
        st.rerun()

def step3():
    st.header(f"Step 3: {STEP_NAMES[3]}")
    inv = draft_store().draft.invoice
    field_input("invoice", "number", "Invoice number")
    c1, c2 = st.columns(2)
    with c1:
        date_input("issue_date", "Issue date")
    with c2:
        date_input("due_date", "Due date")
    codes = list(CURRENCY_SYMBOLS)
    currency = st.selectbox("Currency", codes, index=codes.index(inv.currency) if inv.currency in codes else 0)
    if currency != inv.currency:
        apply(SetField("invoice", "currency", currency))

    st.subheader("Line items")
    line_items_editor()
    nav_buttons(3)

def step4():
    st.header(f"Step 4: {STEP_NAMES[4]}")
    draft = draft_store().draft
    field_input("invoice", "note", "Note", widget=st.text_area)

    with st.expander("More options"):
        discount = draft.discount
        c1, c2 = st.columns(2)
        dtype = c1.selectbox("Discount", DISCOUNT_TYPES, index=DISCOUNT_TYPES.index(discount.type),
                             format_func=DISCOUNT_LABELS.get)
        dvalue = c2.number_input("Discount value", min_value=0.0, value=float(discount.value), step=1.0,
                                 disabled=dtype == "none")
        if dtype != discount.type or format_number(dvalue) != format_number(discount.value):
            apply(SetDiscount(dtype, dvalue))

        tax = draft.tax
        c3, c4 = st.columns(2)
        enabled = c3.checkbox("Apply tax", value=tax.enabled)
        rate = c4.number_input("Tax rate (%)", min_value=0.0, value=float(tax.rate), step=0.5, disabled=not enabled)
        if enabled != tax.enabled or format_number(rate) != format_number(tax.rate):
            apply(SetTax(enabled, rate))

        field_input("invoice", "custom_footer", "Custom footer")

    nav_buttons(4)
    export_actions()

# ---- Export ----

def _on_pdf_downloaded(number: str):
    try:
        local_store().record_export(number)
    except OSError as e:
        logger.error("Error saving invoice number: %s", e)

def save_invoice():
    snapshot = build_invoice_snapshot(draft_store().draft)
    try:
        result = get_notion().create_invoice(snapshot)
    except NotionError as e:
        logger.error("Error saving invoice: %s", e)
        st.error(f"Error: {e}")
        return
    if not result.success:
        st.error("Failed to save invoice")
        return
    st.toast(f"Invoice {snapshot.invoice_number} saved to Notion!")

def export_actions():
    st.write("---")
    draft = draft_store().draft
    preview = draft_store().preview()
    c_pdf, c_save = st.columns(2)

    logo = client_logo_data_uri() if preview.client.logo.kind == LOGO_IMAGE else None
    try:
        pdf_bytes = build_pdf_bytes(preview, logo_data_uri=logo)
    except Exception as e:
        logger.error("Error generating PDF: %s", e)
        c_pdf.error("Error generating PDF. Please try again.")
    else:
        c_pdf.download_button(
            "Download PDF", data=pdf_bytes,
            file_name=pdf_filename(draft.invoice.number, draft.client.name),
            mime="application/pdf",
            on_click=_on_pdf_downloaded, args=(draft.invoice.number,),
            type="primary",
        )

    if get_notion() is not None and c_save.button("Save invoice to Notion"):
        save_invoice()

# ---- Preview ----

def render_preview():
    preview = draft_store().preview()
    theme = st.session_state.get("theme", "light")
    logo_src = None
    if preview.client.logo.kind == LOGO_IMAGE:
        logo_src = st.session_state.logo_cache.get(preview.client.logo.value)
    html_doc = render_preview_html(preview, theme=theme, client_logo_src=logo_src)
    components.html(f"""<!doctype html><html><head><meta charset="utf-8"><title>Invoice</title></head>
    <body style="margin:0;">{html_doc}</body></html>""", height=900, scrolling=True)

def sidebar():
    with st.sidebar:
        st.subheader("Steps")
        for n, name in STEP_NAMES.items():
            label = f"**{n}. {name}**" if n == st.session_state.current_step else f"{n}. {name}"
            if st.button(label, key=f"goto_{n}", use_container_width=True):
                set_step(n); st.rerun()
        dark = st.toggle("Dark preview", value=st.session_state.get("theme") == "dark")
        theme = "dark" if dark else "light"
        if theme != st.session_state.get("theme"):
            st.session_state.theme = theme
            try:
                local_store().save_theme(theme)
            except OSError as e:
                logger.error("Error saving theme: %s", e)

# ---- Main ----

def main():
    st.set_page_config(page_title="Invoice Builder", layout="wide")
    get_settings()
    ensure_session()

    # Render access page in isolation
    if st.session_state.get("current_step", -1) == -1:
        st.title("Invoice Builder")
        step_minus_1()
        st.stop()

    st.title("Invoice Builder")
    sidebar()
    form_col, preview_col = st.columns([1,1])
    step = st.session_state.current_step

    with form_col:
        if step == 1:
            step1()
        elif step == 2:
            step2()
        elif step == 3:
            step3()
        else:
            step4()

    with preview_col:
        render_preview()

if __name__ == "__main__":
    main()
